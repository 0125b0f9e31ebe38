"""
Package des styles de service chef-client

Un style par mécanisme de supervision :
- SysV init, Arch rc.d
- SMF (Solaris)
- upstart
- runit, bluepill, daemontools
- Service Windows
- launchd (macOS)
- BSD rc.local et style inconnu
"""

from .base_service import BaseService
from .macos_launchd import MacOSLaunchdService
from .manual import BSDService, UnmanagedService
from .smf import SMFService
from .supervisors import BluepillService, DaemontoolsService, RunitService
from .sysv_init import ArchService, SysVInitService
from .upstart import UpstartService
from .windows_service import WindowsService


SERVICE_STYLES = {
    cls.init_style: cls
    for cls in (
        SysVInitService, SMFService, UpstartService, ArchService, RunitService,
        BluepillService, DaemontoolsService, WindowsService, MacOSLaunchdService,
        BSDService, UnmanagedService,
    )
}


def get_service_style(init_style: str):
    """
    Retourne la classe du style d'init, UnmanagedService si inconnu
    """
    return SERVICE_STYLES.get(init_style, UnmanagedService)
