"""Open an interactive SSH session into a container instance.

The flow is:

1. Validate the instance ID and negotiate a short-lived SSH session with the
   control plane.
2. Start a local TCP proxy on an OS-assigned loopback port that relays to the
   remote session endpoint.
3. Run the system ``ssh`` client against the proxy, with the caller's
   pass-through flags.
4. Tear the proxy down once ssh exits, whatever the outcome.
"""

import logging
import shutil
import subprocess
from concurrent.futures import Future
from enum import Enum
from typing import Callable, Dict, List, Optional

from ..models.session import SSHSession
from ..services.exceptions import ServiceError
from .constants import (
    INSTANCE_ID_LENGTH,
    PROXY_HOST,
    SSH_BINARY,
    SSH_HANDSHAKE_FAILURE_CODE,
    SSH_PASSTHROUGH_FLAGS,
    SSH_REMOTE_USER,
)
from .errors import (
    ProxyAddressError,
    SshHandshakeError,
    SshNotInstalledError,
    UserError,
    classify_service_error,
)
from .ssh_proxy import CancellationHandle, SshTcpProxy

logger = logging.getLogger(__name__)


def validate_instance_id(instance_id: str) -> None:
    """Reject anything that is not shaped like an instance ID."""
    if not instance_id or len(instance_id) != INSTANCE_ID_LENGTH:
        raise UserError(f"Expected an instance ID but got {instance_id}")


def build_ssh_args(options: Dict[str, Optional[str]]) -> List[str]:
    """Build pass-through ssh flags.

    Args:
        options: Map of single-letter ssh flag to value; missing or None
            values are skipped

    Returns:
        Flag/value pairs in a fixed order
    """
    flags = []
    for flag, _ in SSH_PASSTHROUGH_FLAGS:
        value = options.get(flag)
        if value is not None:
            flags.extend([f"-{flag}", value])
    return flags


def verify_ssh_installed(binary: str = SSH_BINARY) -> str:
    """Return the full path of the ssh client, or raise if it is missing."""
    path = shutil.which(binary)
    if path is None:
        raise SshNotInstalledError(
            f"'{binary}' was not found on your PATH. "
            "Install an OpenSSH client to connect to containers."
        )
    return path


class ChildState(Enum):
    """Lifecycle of the spawned ssh client."""
    SPAWNED = "spawned"
    EXITED_OK = "exited_ok"
    EXITED_FAIL = "exited_fail"
    ERRORED = "errored"


class ChildProcessMonitor:
    """Runs the ssh client and settles a single completion future.

    Exactly one terminal state is reached. The exit code is always checked
    before the process counts as successful.
    """

    def __init__(self, args: List[str], popen: Callable = subprocess.Popen):
        self.args = args
        self._popen = popen
        self.process = None
        self.state: Optional[ChildState] = None
        self.exit_code: Optional[int] = None
        self.completion: Future = Future()

    def _settle(self, state: ChildState, error: Optional[BaseException] = None):
        if self.completion.done():
            return
        self.state = state
        logger.debug(f"ssh client state: {state.value} (exit code {self.exit_code})")
        if error is None:
            self.completion.set_result(state)
        else:
            self.completion.set_exception(error)

    def spawn(self):
        try:
            # stdio is inherited so ssh owns the terminal
            self.process = self._popen(self.args)
        except OSError as e:
            self._settle(ChildState.ERRORED, e)
            return
        self.state = ChildState.SPAWNED

    def wait(self) -> ChildState:
        """Block until ssh exits and return the terminal state.

        Raises:
            SshHandshakeError: If ssh exited with its handshake failure code
            OSError: If the process could not be started
        """
        if not self.completion.done():
            self.exit_code = self.process.wait()
            if self.exit_code == SSH_HANDSHAKE_FAILURE_CODE:
                self._settle(
                    ChildState.EXITED_FAIL,
                    SshHandshakeError("ssh exited unsuccessfully. Is the container running?"),
                )
            else:
                self._settle(ChildState.EXITED_OK)
        return self.completion.result()


class SshTunnel:
    """Bootstraps an SSH session through a local relay.

    Args:
        api_client: Client used to negotiate the session
        ssh_binary: Name of the ssh client to run
        connect: Remote relay factory passed to ``SshTcpProxy``
        popen: Process factory used to spawn ssh
    """

    def __init__(self, api_client, ssh_binary: str = SSH_BINARY,
                 connect: Optional[Callable] = None,
                 popen: Callable = subprocess.Popen):
        self.api_client = api_client
        self.ssh_binary = ssh_binary
        self._connect = connect
        self._popen = popen
        self.proxy: Optional[SshTcpProxy] = None
        self.cancellation: Optional[CancellationHandle] = None
        self.monitor: Optional[ChildProcessMonitor] = None

    def authenticate(self, instance_id: str) -> SSHSession:
        """Validate the instance ID and request an SSH session for it."""
        validate_instance_id(instance_id)
        try:
            session = self.api_client.create_ssh_session(instance_id)
        except ServiceError as e:
            raise classify_service_error(e, "when trying to SSH into the container") from e
        logger.debug(f"Obtained SSH session for instance {instance_id[:12]}")
        return session

    def connect(self, session: SSHSession, ssh_options: Optional[Dict[str, Optional[str]]] = None) -> ChildState:
        """Relay ssh through a local proxy until the client exits.

        The proxy is cancelled exactly once on every exit path.
        """
        self.cancellation = CancellationHandle()
        self.proxy = SshTcpProxy(session, connect=self._connect)
        try:
            self.proxy.listen(self.cancellation)

            address = self.proxy.address()
            if address is None:
                raise ProxyAddressError("Couldn't get local SSH TCP proxy address")
            host, port = address
            logger.debug(f"SSH proxy listening on {host}:{port}")

            ssh_path = verify_ssh_installed(self.ssh_binary)
            args = [
                ssh_path,
                f"{SSH_REMOTE_USER}@{PROXY_HOST}",
                "-p",
                str(port),
                *build_ssh_args(ssh_options or {}),
            ]
            logger.debug(f"Spawning: {' '.join(args)}")

            self.monitor = ChildProcessMonitor(args, popen=self._popen)
            self.monitor.spawn()
            return self.monitor.wait()
        finally:
            self.cancellation.cancel()

    def run(self, instance_id: str, ssh_options: Optional[Dict[str, Optional[str]]] = None) -> ChildState:
        """Authenticate and connect in one step."""
        session = self.authenticate(instance_id)
        return self.connect(session, ssh_options)
