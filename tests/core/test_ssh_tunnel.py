"""Tests for the SSH tunnel bootstrapper."""

import os
import stat
import socket
from unittest.mock import MagicMock, patch

import pytest

from containerctl.core.errors import (
    InternalError,
    NotFoundOrBadRequestError,
    ProxyAddressError,
    SshHandshakeError,
    SshNotInstalledError,
    UnknownRemoteError,
    UserError,
)
from containerctl.core.ssh_tunnel import (
    ChildProcessMonitor,
    ChildState,
    SshTunnel,
    build_ssh_args,
    validate_instance_id,
    verify_ssh_installed,
)
from containerctl.services.api_client import ContainersApiClient
from containerctl.services.exceptions import ApiError, TransportError


def fake_popen(exit_code):
    process = MagicMock()
    process.wait.return_value = exit_code
    return MagicMock(return_value=process)


@pytest.fixture
def fake_ssh_dir(tmp_path, monkeypatch):
    """Put a directory for fake ssh scripts at the front of PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    return bin_dir


def write_fake_ssh(bin_dir, exit_code, args_file=None):
    script = bin_dir / "ssh"
    lines = ["#!/bin/sh"]
    if args_file is not None:
        lines.append(f'printf "%s\\n" "$@" > "{args_file}"')
    lines.append(f"exit {exit_code}")
    script.write_text("\n".join(lines) + "\n")
    script.chmod(script.stat().st_mode | stat.S_IEXEC | stat.S_IXGRP | stat.S_IXOTH)
    return script


def port_is_closed(port):
    try:
        socket.create_connection(("127.0.0.1", port), timeout=1).close()
    except OSError:
        return True
    return False


class TestValidation:
    """Test cases for instance ID validation and argument building."""

    @pytest.mark.parametrize("bad_id", ["", "abc", "a" * 63, "a" * 65])
    def test_rejects_malformed_ids(self, bad_id):
        with pytest.raises(UserError, match="Expected an instance ID"):
            validate_instance_id(bad_id)

    def test_accepts_64_character_id(self, instance_id):
        validate_instance_id(instance_id)

    def test_build_ssh_args_skips_missing_values(self):
        assert build_ssh_args({}) == []
        assert build_ssh_args({"i": None, "o": None}) == []

    def test_build_ssh_args_emits_pairs_in_order(self):
        args = build_ssh_args({
            "o": "StrictHostKeyChecking=no",
            "i": "~/.ssh/id_ed25519",
            "c": "aes256-ctr",
        })

        assert args == [
            "-c", "aes256-ctr",
            "-i", "~/.ssh/id_ed25519",
            "-o", "StrictHostKeyChecking=no",
        ]

    def test_build_ssh_args_case_sensitive_flags(self):
        args = build_ssh_args({"E": "ssh.log", "e": "~"})

        assert args == ["-E", "ssh.log", "-e", "~"]

    @patch('containerctl.core.ssh_tunnel.shutil.which', return_value=None)
    def test_verify_ssh_installed_missing(self, mock_which):
        with pytest.raises(SshNotInstalledError, match="'ssh' was not found"):
            verify_ssh_installed()

    @patch('containerctl.core.ssh_tunnel.shutil.which', return_value="/usr/bin/ssh")
    def test_verify_ssh_installed_present(self, mock_which):
        assert verify_ssh_installed("ssh") == "/usr/bin/ssh"
        mock_which.assert_called_once_with("ssh")


class TestChildProcessMonitor:
    """Test cases for the ssh process state machine."""

    def test_clean_exit(self):
        monitor = ChildProcessMonitor(["ssh"], popen=fake_popen(0))
        monitor.spawn()
        assert monitor.state == ChildState.SPAWNED

        assert monitor.wait() == ChildState.EXITED_OK
        assert monitor.exit_code == 0

    def test_other_nonzero_exit_is_success(self):
        monitor = ChildProcessMonitor(["ssh"], popen=fake_popen(1))
        monitor.spawn()

        assert monitor.wait() == ChildState.EXITED_OK

    def test_handshake_failure(self):
        monitor = ChildProcessMonitor(["ssh"], popen=fake_popen(255))
        monitor.spawn()

        with pytest.raises(SshHandshakeError, match="Is the container running"):
            monitor.wait()
        assert monitor.state == ChildState.EXITED_FAIL

    def test_spawn_error(self):
        popen = MagicMock(side_effect=FileNotFoundError("no ssh"))
        monitor = ChildProcessMonitor(["ssh"], popen=popen)
        monitor.spawn()

        assert monitor.state == ChildState.ERRORED
        with pytest.raises(FileNotFoundError):
            monitor.wait()

    def test_completion_settles_once(self):
        monitor = ChildProcessMonitor(["ssh"], popen=fake_popen(0))
        monitor.spawn()
        monitor.wait()

        assert monitor.wait() == ChildState.EXITED_OK
        assert monitor.process.wait.call_count == 1


class TestSshTunnelAuthenticate:
    """Test cases for session negotiation."""

    def test_malformed_id_rejected_before_network(self, mock_api_client):
        tunnel = SshTunnel(mock_api_client)

        with pytest.raises(UserError):
            tunnel.run("not-an-instance")

        mock_api_client.create_ssh_session.assert_not_called()

    def test_not_found_includes_payload(self, mock_api_client, instance_id):
        mock_api_client.create_ssh_session.side_effect = ApiError(
            404, {"error": "instance does not exist"}
        )
        tunnel = SshTunnel(mock_api_client)

        with pytest.raises(NotFoundOrBadRequestError) as exc_info:
            tunnel.authenticate(instance_id)

        assert "instance does not exist" in exc_info.value.message
        assert "error when trying to SSH into the container" in exc_info.value.message

    def test_unknown_remote_error(self, mock_api_client, instance_id):
        mock_api_client.create_ssh_session.side_effect = ApiError(500, {"error": "oops"})

        with pytest.raises(UnknownRemoteError, match="unknown error"):
            SshTunnel(mock_api_client).authenticate(instance_id)

    def test_transport_error(self, mock_api_client, instance_id):
        mock_api_client.create_ssh_session.side_effect = TransportError("timed out")

        with pytest.raises(InternalError, match="timed out"):
            SshTunnel(mock_api_client).authenticate(instance_id)

    def test_returns_session(self, mock_api_client, instance_id, ssh_session):
        assert SshTunnel(mock_api_client).authenticate(instance_id) == ssh_session
        mock_api_client.create_ssh_session.assert_called_once_with(instance_id)

    def test_session_missing_token_is_classified(self, client_config, instance_id):
        http = MagicMock()
        http.headers = {}
        response = http.request.return_value
        response.status_code = 200
        response.ok = True
        response.content = b"x"
        response.json.return_value = {"result": {"url": "wss://relay.example.test/ssh"}}
        tunnel = SshTunnel(ContainersApiClient(client_config, session=http))

        with pytest.raises(UnknownRemoteError) as exc_info:
            tunnel.authenticate(instance_id)

        assert "Unexpected response from the API" in exc_info.value.message
        assert "token" in exc_info.value.message
        assert tunnel.proxy is None


@patch('containerctl.core.ssh_tunnel.shutil.which', return_value="/usr/bin/ssh")
class TestSshTunnelConnect:
    """Test cases for the proxy and process lifecycle."""

    def test_success_cancels_once(self, mock_which, mock_api_client, ssh_session):
        popen = fake_popen(0)
        tunnel = SshTunnel(mock_api_client, popen=popen)

        assert tunnel.connect(ssh_session) == ChildState.EXITED_OK

        assert tunnel.cancellation.cancel_count == 1
        assert tunnel.proxy.closed

    def test_spawn_arguments(self, mock_which, mock_api_client, ssh_session):
        popen = fake_popen(0)
        tunnel = SshTunnel(mock_api_client, popen=popen)

        tunnel.connect(ssh_session, {"i": "key.pem", "o": None, "P": "prod"})

        args = popen.call_args[0][0]
        assert args[0] == "/usr/bin/ssh"
        assert args[1] == "cloudchamber@127.0.0.1"
        assert args[2] == "-p"
        assert int(args[3]) > 0
        assert args[4:] == ["-i", "key.pem", "-P", "prod"]
        assert "-o" not in args

    def test_handshake_failure_cancels_once(self, mock_which, mock_api_client, ssh_session):
        tunnel = SshTunnel(mock_api_client, popen=fake_popen(255))

        with pytest.raises(SshHandshakeError):
            tunnel.connect(ssh_session)

        assert tunnel.monitor.state == ChildState.EXITED_FAIL
        assert tunnel.cancellation.cancel_count == 1
        assert tunnel.proxy.closed

    def test_spawn_error_propagates_and_cancels_once(self, mock_which, mock_api_client, ssh_session):
        popen = MagicMock(side_effect=PermissionError("not executable"))
        tunnel = SshTunnel(mock_api_client, popen=popen)

        with pytest.raises(PermissionError, match="not executable"):
            tunnel.connect(ssh_session)

        assert tunnel.monitor.state == ChildState.ERRORED
        assert tunnel.cancellation.cancel_count == 1

    def test_missing_binary_cancels_once(self, mock_which, mock_api_client, ssh_session):
        mock_which.return_value = None
        popen = fake_popen(0)
        tunnel = SshTunnel(mock_api_client, popen=popen)

        with pytest.raises(SshNotInstalledError):
            tunnel.connect(ssh_session)

        popen.assert_not_called()
        assert tunnel.cancellation.cancel_count == 1
        assert tunnel.proxy.closed

    def test_unresolved_address_is_fatal(self, mock_which, mock_api_client, ssh_session):
        popen = fake_popen(0)
        tunnel = SshTunnel(mock_api_client, popen=popen)

        with patch('containerctl.core.ssh_tunnel.SshTcpProxy.address', return_value=None):
            with pytest.raises(ProxyAddressError, match="Couldn't get local SSH TCP proxy address"):
                tunnel.connect(ssh_session)

        popen.assert_not_called()
        assert tunnel.cancellation.cancel_count == 1


class TestSshTunnelEndToEnd:
    """Run the tunnel against a fake ssh binary on PATH."""

    def test_clean_exit(self, fake_ssh_dir, mock_api_client, instance_id, tmp_path):
        args_file = tmp_path / "ssh-args.txt"
        write_fake_ssh(fake_ssh_dir, 0, args_file=args_file)
        tunnel = SshTunnel(mock_api_client)

        state = tunnel.run(instance_id, {"i": "key.pem"})

        assert state == ChildState.EXITED_OK
        recorded = args_file.read_text().split("\n")
        port = int(recorded[2])
        assert recorded[:2] == ["cloudchamber@127.0.0.1", "-p"]
        assert recorded[3:5] == ["-i", "key.pem"]
        assert tunnel.proxy.closed
        assert port_is_closed(port)
        assert tunnel.cancellation.cancel_count == 1

    def test_handshake_failure(self, fake_ssh_dir, mock_api_client, instance_id, tmp_path):
        args_file = tmp_path / "ssh-args.txt"
        write_fake_ssh(fake_ssh_dir, 255, args_file=args_file)
        tunnel = SshTunnel(mock_api_client)

        with pytest.raises(SshHandshakeError, match="Is the container running"):
            tunnel.run(instance_id)

        port = int(args_file.read_text().split("\n")[2])
        assert tunnel.proxy.closed
        assert port_is_closed(port)
        assert tunnel.cancellation.cancel_count == 1
