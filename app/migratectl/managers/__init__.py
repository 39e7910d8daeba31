"""Package manager adapters for migratectl.

Each adapter exports the installed package list of one package manager
and replays it on a new machine.
"""

from migratectl.managers.base import PackageManager
from migratectl.managers.chocolatey import ChocolateyManager
from migratectl.managers.scoop import ScoopManager
from migratectl.managers.winget import WingetManager
from migratectl.models.package import PackageSource

_MANAGER_TYPES: dict[PackageSource, type[PackageManager]] = {
    PackageSource.WINGET: WingetManager,
    PackageSource.CHOCOLATEY: ChocolateyManager,
    PackageSource.SCOOP: ScoopManager,
}


def get_managers(
    sources: tuple[PackageSource, ...] | None = None,
    timeout: float = 3600.0,
) -> dict[PackageSource, PackageManager]:
    """Get adapter instances for the selected package managers.

    Args:
        sources: Package managers to include. If None, includes all.
        timeout: Command timeout passed to each adapter.

    Returns:
        Mapping of package source to adapter, in source order.
    """
    selected = sources if sources is not None else tuple(PackageSource)
    return {source: _MANAGER_TYPES[source](timeout=timeout) for source in selected}


__all__ = [
    "ChocolateyManager",
    "PackageManager",
    "ScoopManager",
    "WingetManager",
    "get_managers",
]
