"""Local TCP proxy that relays an SSH client to a remote session endpoint."""

import logging
import socket
import threading
from typing import Callable, List, Optional, Tuple

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as websocket_connect

from ..models.session import SSHSession
from .constants import PROXY_ACCEPT_POLL_INTERVAL, PROXY_HOST, RELAY_CHUNK_SIZE

logger = logging.getLogger(__name__)


class CancellationHandle:
    """Cooperative cancellation signal shared between an owner and a listener.

    The owner calls ``cancel``; listeners poll ``cancelled`` or register a
    callback. Callbacks run once, on the first cancel.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self.cancel_count = 0

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], None]):
        """Run ``callback`` on cancel, or immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self):
        with self._lock:
            self.cancel_count += 1
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


def open_websocket(session: SSHSession):
    """Open the remote side of a relay for ``session``."""
    return websocket_connect(
        session.url,
        additional_headers={"Authorization": f"Bearer {session.token}"},
    )


class RelayConnection:
    """Pumps bytes between one accepted client socket and its remote peer."""

    def __init__(self, client: socket.socket, remote):
        self.client = client
        self.remote = remote
        self._closed = threading.Event()
        self._threads: List[threading.Thread] = []

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self):
        for target in (self._pump_upstream, self._pump_downstream):
            thread = threading.Thread(target=target, daemon=True)
            thread.start()
            self._threads.append(thread)

    def _pump_upstream(self):
        try:
            while True:
                data = self.client.recv(RELAY_CHUNK_SIZE)
                if not data:
                    break
                self.remote.send(data)
        except (OSError, ConnectionClosed) as e:
            if not self.closed:
                logger.debug(f"Upstream relay stopped: {e}")
        finally:
            self.close()

    def _pump_downstream(self):
        try:
            for message in self.remote:
                if isinstance(message, str):
                    message = message.encode()
                self.client.sendall(message)
        except (OSError, ConnectionClosed) as e:
            if not self.closed:
                logger.debug(f"Downstream relay stopped: {e}")
        finally:
            self.close()

    def close(self):
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self.remote.close()
        except (OSError, WebSocketException) as e:
            logger.debug(f"Error closing remote side of relay: {e}")
        try:
            self.client.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone
        self.client.close()


class SshTcpProxy:
    """TCP listener on the loopback interface that relays each connection
    to the remote SSH session endpoint.

    Args:
        session: Session descriptor authorizing the relay
        connect: Factory returning the remote side of a relay for a session.
            It must provide ``send(bytes)``, iteration over received messages
            and ``close()``. Defaults to a WebSocket connection.
    """

    def __init__(self, session: SSHSession, connect: Optional[Callable] = None):
        self.session = session
        self._connect = connect or open_websocket
        self._server: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._relays: List[RelayConnection] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_connections(self) -> int:
        with self._lock:
            return sum(1 for relay in self._relays if not relay.closed)

    def listen(self, cancellation: CancellationHandle, host: str = PROXY_HOST, port: int = 0):
        """Bind the listener and start accepting until ``cancellation`` fires."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server.bind((host, port))
            server.listen(1)
        except OSError:
            server.close()
            raise
        server.settimeout(PROXY_ACCEPT_POLL_INTERVAL)
        self._server = server

        cancellation.add_callback(self.close)
        self._accept_thread = threading.Thread(
            target=self._accept_loop,
            args=(cancellation,),
            name="ssh-proxy-accept",
            daemon=True,
        )
        self._accept_thread.start()

    def address(self) -> Optional[Tuple[str, int]]:
        """Return the bound ``(host, port)``, or None if it cannot be resolved."""
        if self._server is None:
            return None
        try:
            address = self._server.getsockname()
        except OSError:
            return None
        if not isinstance(address, tuple) or len(address) < 2:
            return None
        host, port = address[0], address[1]
        if not isinstance(port, int) or port <= 0:
            return None
        return host, port

    def _accept_loop(self, cancellation: CancellationHandle):
        while not cancellation.cancelled:
            try:
                client, peer = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                # Listener closed underneath us
                break

            if cancellation.cancelled:
                client.close()
                break

            logger.debug(f"Accepted proxy connection from {peer}")
            client.settimeout(None)
            try:
                remote = self._connect(self.session)
            except (OSError, WebSocketException) as e:
                logger.error(f"Could not open SSH relay to {self.session.url}: {e}")
                client.close()
                continue

            relay = RelayConnection(client, remote)
            with self._lock:
                self._relays.append(relay)
            relay.start()

    def close(self):
        """Stop accepting and tear down every relay."""
        if self._closed:
            return
        self._closed = True
        if self._server is not None:
            self._server.close()
        with self._lock:
            relays, self._relays = self._relays, []
        for relay in relays:
            relay.close()
        if self._accept_thread is not None and self._accept_thread is not threading.current_thread():
            self._accept_thread.join(timeout=PROXY_ACCEPT_POLL_INTERVAL * 5)
        logger.debug("SSH proxy closed")
