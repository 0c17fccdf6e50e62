from __future__ import annotations
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import is_disk_key


CPU       = "CPU"
MEMORY    = "Memory"
NETWORK   = "Network"
PROCESSES = "Processes"

CORE_COMPONENTS: Tuple[str, ...] = (CPU, MEMORY, NETWORK, PROCESSES)

# component -> components it depends on, in declaration order
STATIC_DEPENDENCIES: Dict[str, Tuple[str, ...]] = {
    CPU:       (),
    MEMORY:    (CPU,),
    NETWORK:   (CPU, MEMORY),
    PROCESSES: (CPU, MEMORY),
}

# Every disk instance depends on these
DISK_DEPENDENCIES: Tuple[str, ...] = (MEMORY, CPU)


class DependencyTopology:
    """
    Causal dependency graph over component keys.

    Core edges are static. Disk keys form an open key space: a disk
    depends on Memory and CPU, and Processes depends on every disk that is
    currently known. The synthesized graph stays acyclic because disks
    only point at core components that never point back at disks.
    """

    def __init__(self, static: Dict[str, Tuple[str, ...]] = STATIC_DEPENDENCIES):
        self._static = static

    def dependencies_of(self, component: str, known: Sequence[str]) -> List[str]:
        """Direct dependencies of *component*, restricted to *known* keys."""
        deps: List[str] = [d for d in self._static.get(component, ()) if d in known]
        if is_disk_key(component):
            deps.extend(d for d in DISK_DEPENDENCIES if d in known and d not in deps)
        if component == PROCESSES:
            deps.extend(k for k in known if is_disk_key(k) and k not in deps)
        return deps

    def dependency_chain(self, component: str, known: Iterable[str]) -> List[str]:
        """
        Depth-first list of everything upstream of *component*.

        Each key appears once, in first-visit order; dependencies are
        expanded in declaration order. Only keys in *known* are visited.
        """
        known = list(known)
        chain: List[str] = []
        self._walk(component, chain, known)
        return chain

    def _walk(self, component: str, chain: List[str], known: List[str]) -> None:
        for dep in self.dependencies_of(component, known):
            if dep in chain or dep == component:
                continue
            chain.append(dep)
            self._walk(dep, chain, known)
