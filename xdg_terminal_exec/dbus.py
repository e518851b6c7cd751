import dbus
from xdg_terminal_exec.misc import print_debug
from xdg_terminal_exec.params import BIN_NAME


class DbusInteractions:
    "Handles desktop notifications via DBus"

    # mapping of logical service keys to (bus_name, object_path)
    _SERVICES = {
        "notifications": (
            "org.freedesktop.Notifications",
            "/org/freedesktop/Notifications",
        ),
    }

    # mapping of service key -> { iface_key: iface_name, ... }
    _INTERFACES = {
        "notifications": {
            "notify": "org.freedesktop.Notifications",
        },
    }

    def __init__(self, dbus_level: str):
        "Takes dbus_level as 'system' or 'session'"
        if dbus_level in ["system", "session"]:
            print_debug("initiate dbus interaction", dbus_level)
            self.dbus_level = dbus_level
            self._bus = None
            self._proxies = {}
            self._interfaces = {}
        else:
            raise ValueError(
                f"dbus_level can be 'system' or 'session', got '{dbus_level}'"
            )

    def __str__(self):
        "Prints currently held interfaces for debug purposes"
        return f"DbusInteractions, instance level: {self.dbus_level}, interfaces: {list(self._interfaces)}"

    def _get_bus(self):
        """Lazily return and cache the system or session bus."""
        if self._bus is None:
            self._bus = (
                dbus.SystemBus() if self.dbus_level == "system" else dbus.SessionBus()
            )
        return self._bus

    def _get_proxy(self, service_key: str):
        """Retrieve and cache a DBus object proxy for the given service."""
        if service_key not in self._proxies:
            bus_name, path = self._SERVICES[service_key]
            self._proxies[service_key] = self._get_bus().get_object(bus_name, path)
        return self._proxies[service_key]

    def _get_interface(self, service_key: str, iface_key: str):
        """Retrieve and cache a DBus Interface for the given service and interface."""
        cache_key = f"{service_key}_{iface_key}"
        if cache_key not in self._interfaces:
            proxy = self._get_proxy(service_key)
            iface_name = self._INTERFACES[service_key][iface_key]
            self._interfaces[cache_key] = dbus.Interface(proxy, iface_name)
        return self._interfaces[cache_key]

    def notify(
        self,
        summary: str,
        body: str,
        app_icon: str = "utilities-terminal",
        urgency: int = 1,
    ):
        "Sends notification via Dbus, new one each time, with server default timeout"
        if not 0 <= urgency <= 2:
            raise ValueError(f"Urgency range is 0-2, got {urgency}")
        # plain integer does not work for urgency hint
        self._get_interface("notifications", "notify").Notify(
            BIN_NAME, 0, app_icon, summary, body, [], {"urgency": dbus.Byte(urgency)}, -1
        )
