"""MPRIS2 remote control over the D-Bus session bus (dbus-python + GLib).

The exported object reads state from the `ControlBridge` snapshot and turns
every method call or property write into a remote action queued on the engine
command stream. It never touches the engine directly. Outbound signals are
marshalled onto the GLib main-loop thread with `GLib.idle_add`.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import dbus
import dbus.mainloop.glib
import dbus.service
from gi.repository import GLib

from voru.events import (
    RemoteNext,
    RemotePause,
    RemotePlay,
    RemotePlayPause,
    RemotePrev,
    RemoteSeek,
    RemoteSetLoop,
    RemoteSetPosition,
    RemoteShuffle,
    RemoteStop,
    RemoteVolume,
)

from .control_bridge import (
    ControlBridge,
    Notification,
    PlayerSnapshot,
    PropertiesChanged,
    Seeked,
    metadata_fields,
    track_id_from_object_path,
)

logger = logging.getLogger(__name__)

BUS_NAME = "org.mpris.MediaPlayer2.voru"
OBJECT_PATH = "/org/mpris/MediaPlayer2"
ROOT_IFACE = "org.mpris.MediaPlayer2"
PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"
IDENTITY = "VORU"


def root_properties() -> dict[str, Any]:
    return {
        "CanQuit": dbus.Boolean(False),
        "CanRaise": dbus.Boolean(False),
        "CanSetFullscreen": dbus.Boolean(False),
        "Fullscreen": dbus.Boolean(False),
        "HasTrackList": dbus.Boolean(False),
        "Identity": dbus.String(IDENTITY),
        "DesktopEntry": dbus.String(""),
        "SupportedUriSchemes": dbus.Array(["file"], signature="s"),
        "SupportedMimeTypes": dbus.Array(["audio/mpeg"], signature="s"),
    }


def player_properties(snapshot: PlayerSnapshot) -> dict[str, Any]:
    return {
        "PlaybackStatus": dbus.String(snapshot.status),
        "LoopStatus": dbus.String(snapshot.loop_status),
        "Shuffle": dbus.Boolean(snapshot.shuffle),
        "Metadata": dbus_metadata(snapshot),
        "Volume": dbus.Double(snapshot.volume),
        "Position": dbus.Int64(snapshot.position_ms * 1000),
        "Rate": dbus.Double(1.0),
        "MinimumRate": dbus.Double(1.0),
        "MaximumRate": dbus.Double(1.0),
        "CanGoNext": dbus.Boolean(True),
        "CanGoPrevious": dbus.Boolean(True),
        "CanPlay": dbus.Boolean(True),
        "CanPause": dbus.Boolean(True),
        "CanSeek": dbus.Boolean(True),
        "CanControl": dbus.Boolean(True),
    }


def dbus_metadata(snapshot: PlayerSnapshot) -> dbus.Dictionary:
    fields = metadata_fields(snapshot)
    converted: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "mpris:trackid":
            converted[key] = dbus.ObjectPath(value)
        elif key == "mpris:length":
            converted[key] = dbus.Int64(value)
        elif isinstance(value, list):
            converted[key] = dbus.Array(value, signature="s")
        else:
            converted[key] = dbus.String(value)
    return dbus.Dictionary(converted, signature="sv")


class MprisObject(dbus.service.Object):
    """`/org/mpris/MediaPlayer2` with the root, player and properties interfaces."""

    def __init__(
        self,
        bus_name: dbus.service.BusName | None,
        bridge: ControlBridge,
    ) -> None:
        if bus_name is None:
            super().__init__()
        else:
            super().__init__(bus_name, OBJECT_PATH)
        self._bridge = bridge

    # org.mpris.MediaPlayer2

    @dbus.service.method(ROOT_IFACE, in_signature="", out_signature="")
    def Raise(self) -> None:
        logger.debug("MPRIS: Raise requested")

    @dbus.service.method(ROOT_IFACE, in_signature="", out_signature="")
    def Quit(self) -> None:
        logger.debug("MPRIS: Quit requested")

    # org.mpris.MediaPlayer2.Player

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def Next(self) -> None:
        self._bridge.request(RemoteNext())

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def Previous(self) -> None:
        self._bridge.request(RemotePrev())

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def Pause(self) -> None:
        self._bridge.request(RemotePause())

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def PlayPause(self) -> None:
        self._bridge.request(RemotePlayPause())

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def Stop(self) -> None:
        self._bridge.request(RemoteStop())

    @dbus.service.method(PLAYER_IFACE, in_signature="", out_signature="")
    def Play(self) -> None:
        self._bridge.request(RemotePlay())

    @dbus.service.method(PLAYER_IFACE, in_signature="x", out_signature="")
    def Seek(self, offset: int) -> None:
        self._bridge.request(RemoteSeek(int(offset)))

    @dbus.service.method(PLAYER_IFACE, in_signature="ox", out_signature="")
    def SetPosition(self, track_id: str, position: int) -> None:
        parsed = track_id_from_object_path(str(track_id))
        if parsed is None:
            logger.debug("MPRIS: SetPosition for unknown track %s", track_id)
            return
        self._bridge.request(RemoteSetPosition(parsed, int(position)))

    @dbus.service.method(PLAYER_IFACE, in_signature="s", out_signature="")
    def OpenUri(self, uri: str) -> None:
        logger.debug("MPRIS: OpenUri not supported (%s)", uri)

    @dbus.service.signal(PLAYER_IFACE, signature="x")
    def Seeked(self, position: int) -> None:
        pass

    # org.freedesktop.DBus.Properties

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature="ss", out_signature="v")
    def Get(self, interface: str, prop: str) -> Any:
        properties = self.GetAll(interface)
        if prop not in properties:
            raise dbus.exceptions.DBusException(
                f"No such property {prop}",
                name="org.freedesktop.DBus.Error.UnknownProperty",
            )
        return properties[prop]

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature="s", out_signature="a{sv}")
    def GetAll(self, interface: str) -> dict[str, Any]:
        if interface == ROOT_IFACE:
            return root_properties()
        if interface == PLAYER_IFACE:
            return player_properties(self._bridge.snapshot())
        raise dbus.exceptions.DBusException(
            f"No such interface {interface}",
            name="org.freedesktop.DBus.Error.UnknownInterface",
        )

    @dbus.service.method(dbus.PROPERTIES_IFACE, in_signature="ssv", out_signature="")
    def Set(self, interface: str, prop: str, value: Any) -> None:
        if interface == PLAYER_IFACE and prop == "Volume":
            self._bridge.request(RemoteVolume(float(value)))
        elif interface == PLAYER_IFACE and prop == "LoopStatus":
            status = str(value)
            if status not in ("None", "Track", "Playlist"):
                raise dbus.exceptions.DBusException(
                    f"Invalid LoopStatus {status}",
                    name="org.freedesktop.DBus.Error.InvalidArgs",
                )
            self._bridge.request(RemoteSetLoop(status))  # type: ignore[arg-type]
        elif interface == PLAYER_IFACE and prop == "Shuffle":
            if bool(value):
                self._bridge.request(RemoteShuffle())
        elif interface == PLAYER_IFACE and prop == "Rate":
            pass
        elif interface == ROOT_IFACE and prop == "Fullscreen":
            pass
        else:
            raise dbus.exceptions.DBusException(
                f"Property {prop} is read-only",
                name="org.freedesktop.DBus.Error.PropertyReadOnly",
            )

    @dbus.service.signal(dbus.PROPERTIES_IFACE, signature="sa{sv}as")
    def PropertiesChanged(
        self, interface: str, changed: dict[str, Any], invalidated: list[str]
    ) -> None:
        pass

    def emit_notification(self, notification: Notification) -> None:
        """Emit the D-Bus signal for a bridge notification. GLib thread only."""
        if isinstance(notification, PropertiesChanged):
            values = player_properties(notification.snapshot)
            changed = {name: values[name] for name in notification.names}
            self.PropertiesChanged(
                PLAYER_IFACE,
                dbus.Dictionary(changed, signature="sv"),
                dbus.Array([], signature="s"),
            )
        elif isinstance(notification, Seeked):
            self.Seeked(dbus.Int64(notification.position_ms * 1000))


class MprisService:
    """Owns the bus name and runs the GLib main loop on its own thread."""

    def __init__(self, bridge: ControlBridge) -> None:
        self._bridge = bridge
        self._loop: GLib.MainLoop | None = None
        self._thread: threading.Thread | None = None
        self._object: MprisObject | None = None
        self._bus_name: dbus.service.BusName | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        dbus.mainloop.glib.threads_init()
        dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
        bus = dbus.SessionBus()
        self._bus_name = dbus.service.BusName(BUS_NAME, bus, do_not_queue=True)
        self._object = MprisObject(self._bus_name, self._bridge)
        self._bridge.add_listener(self._on_notification)
        self._loop = GLib.MainLoop()
        self._thread = threading.Thread(
            target=self._loop.run, name="MprisMainLoop", daemon=True
        )
        self._thread.start()
        logger.info("MPRIS: acquired bus name %s", BUS_NAME)

    def shutdown(self) -> None:
        if self._thread is None or self._loop is None:
            return
        if self._object is not None:
            self._object.remove_from_connection()
            self._object = None
        self._bus_name = None
        self._loop.quit()
        self._thread.join(timeout=2.0)
        self._thread = None
        self._loop = None

    def _on_notification(self, notification: Notification) -> None:
        mpris_object = self._object
        if mpris_object is None:
            return

        def _emit() -> bool:
            mpris_object.emit_notification(notification)
            return False

        GLib.idle_add(_emit)
