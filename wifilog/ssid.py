"""SSID providers — ask the OS which Wi-Fi network we are associated with.

Each provider answers one question: the current SSID, or None when not
associated. A failed query (missing tool, timeout, framework unavailable)
raises SsidQueryError so the caller can tell "offline" from "broken".

  corewlan      macOS, CoreWLAN via pyobjc (needs Location Services for SSID)
  networksetup  macOS, `networksetup -getairportnetwork <iface>`
  nmcli         Linux, NetworkManager
  netsh         Windows, `netsh wlan show interfaces`
"""

from __future__ import annotations

import abc
import logging
import re
import subprocess
import sys

import wifilog.config as config

log = logging.getLogger(__name__)

_NETWORKSETUP_PREFIX = "Current Wi-Fi Network:"
_NMCLI_ESCAPE_RE = re.compile(r"\\(.)")


class SsidQueryError(Exception):
    """The OS could not be asked for the current SSID."""


class SsidProvider(abc.ABC):
    name: str = ""

    @abc.abstractmethod
    def current_ssid(self) -> str | None:
        """Return the associated SSID, or None if not connected."""


def _run(cmd: list[str]) -> str:
    """Run a query command and return stdout, raising SsidQueryError on failure."""
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True,
            timeout=config.SSID_QUERY_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise SsidQueryError(f"{cmd[0]} timed out") from None
    except OSError as e:
        raise SsidQueryError(f"{cmd[0]} failed: {e}") from e

    if result.returncode != 0:
        raise SsidQueryError(
            f"{cmd[0]} exited {result.returncode}: {(result.stderr or '').strip()}"
        )
    return result.stdout


# ── macOS ──────────────────────────────────────────────────────────────


class CoreWlanProvider(SsidProvider):
    name = "corewlan"

    def __init__(self):
        self._client = None

    def _load_client(self):
        try:
            import objc
        except ImportError as e:
            raise SsidQueryError("pyobjc is not installed") from e
        ns: dict = {}
        try:
            objc.loadBundle(
                "CoreWLAN", ns,
                bundle_path="/System/Library/Frameworks/CoreWLAN.framework",
            )
            return ns["CWWiFiClient"].sharedWiFiClient()
        except (ImportError, KeyError, AttributeError) as e:
            raise SsidQueryError(f"CoreWLAN unavailable: {e!r}") from e

    def current_ssid(self) -> str | None:
        if self._client is None:
            self._client = self._load_client()
        iface = self._client.interface()
        if iface is None:
            raise SsidQueryError("no Wi-Fi interface")
        return iface.ssid() or None


class NetworksetupProvider(SsidProvider):
    name = "networksetup"

    def __init__(self, interface: str | None = None):
        self.interface = interface or config.WIFI_INTERFACE

    def current_ssid(self) -> str | None:
        out = _run(["networksetup", "-getairportnetwork", self.interface])
        return parse_networksetup(out)


def parse_networksetup(output: str) -> str | None:
    """Parse `networksetup -getairportnetwork` output.

    "Current Wi-Fi Network: eduroam" -> "eduroam"; anything else
    ("You are not associated with an AirPort network.") -> None.
    """
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(_NETWORKSETUP_PREFIX):
            return line[len(_NETWORKSETUP_PREFIX):].strip() or None
    return None


# ── Linux ──────────────────────────────────────────────────────────────


class NmcliProvider(SsidProvider):
    name = "nmcli"

    def current_ssid(self) -> str | None:
        out = _run(["nmcli", "-t", "-f", "active,ssid", "dev", "wifi"])
        return parse_nmcli(out)


def parse_nmcli(output: str) -> str | None:
    """Pick the active network from `nmcli -t -f active,ssid dev wifi`."""
    for line in output.splitlines():
        if line.startswith("yes:"):
            # terse mode backslash-escapes ":" and "\\" in the SSID
            return _NMCLI_ESCAPE_RE.sub(r"\1", line[4:]) or None
    return None


# ── Windows ────────────────────────────────────────────────────────────


class NetshProvider(SsidProvider):
    name = "netsh"

    def current_ssid(self) -> str | None:
        out = _run(["netsh", "wlan", "show", "interfaces"])
        return parse_netsh(out)


def parse_netsh(output: str) -> str | None:
    """Pull the SSID out of `netsh wlan show interfaces` (ignores BSSID)."""
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "SSID":
            return value.strip() or None
    return None


# ── selection ──────────────────────────────────────────────────────────

PROVIDERS: dict[str, type[SsidProvider]] = {
    cls.name: cls
    for cls in (CoreWlanProvider, NetworksetupProvider, NmcliProvider, NetshProvider)
}

_PLATFORM_DEFAULTS = {
    "darwin": "corewlan",
    "linux": "nmcli",
    "win32": "netsh",
}


def provider_for_platform(platform: str | None = None, name: str | None = None) -> SsidProvider:
    """Build the SSID provider named by ``name``, config, or the platform."""
    name = name or config.SSID_PROVIDER
    if not name:
        platform = platform or sys.platform
        name = _PLATFORM_DEFAULTS.get(platform)
        if name is None:
            raise ValueError(f"no SSID provider for platform {platform!r}")
    if name not in PROVIDERS:
        raise ValueError(f"unknown SSID provider: {name!r}")
    log.debug("using SSID provider %s", name)
    return PROVIDERS[name]()
