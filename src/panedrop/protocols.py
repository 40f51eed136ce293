"""Protocol clients for the remote side of the browser."""

from __future__ import annotations

import ftplib
import logging
import os
import ssl
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO

from panedrop.entries import Entry, EntryKind

if TYPE_CHECKING:
    import paramiko

logger = logging.getLogger(__name__)

BLOCK_SIZE = 8192


class Protocol(Enum):
    FTP = "ftp"
    FTPS = "ftps"
    SFTP = "sftp"


class HostKeyPolicy(Enum):
    """SSH host key verification policy."""

    AUTO_ADD = "auto_add"
    STRICT = "strict"


@dataclass
class ConnectionInfo:
    """Connection parameters for a remote server."""

    protocol: Protocol = Protocol.FTP
    host: str = ""
    port: int = 0  # 0 means use protocol default
    username: str = ""
    password: str = ""
    key_path: str = ""
    timeout: int = 5
    passive_mode: bool = True  # FTP only
    host_key_policy: HostKeyPolicy = HostKeyPolicy.AUTO_ADD

    @property
    def effective_port(self) -> int:
        if self.port > 0:
            return self.port
        defaults = {
            Protocol.FTP: 21,
            Protocol.FTPS: 990,
            Protocol.SFTP: 22,
        }
        return defaults.get(self.protocol, 21)


class TransferClient(ABC):
    """Abstract base class for file transfer protocol clients."""

    def __init__(self, info: ConnectionInfo) -> None:
        self._info = info
        self._connected = False

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    @property
    def connected(self) -> bool:
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Connect to the remote server. Raises ConnectionError on failure."""

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the remote server."""

    @abstractmethod
    def list_dir(self, path: str) -> list[Entry]:
        """List the entries of a remote directory."""

    @abstractmethod
    def download(self, remote_path: str, local_file: BinaryIO) -> None:
        """Write the contents of a remote file into ``local_file``."""

    @abstractmethod
    def upload(self, local_file: BinaryIO, remote_path: str) -> None:
        """Store ``local_file`` at ``remote_path``, replacing any existing file."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a remote file."""

    @abstractmethod
    def rmdir(self, path: str) -> None:
        """Remove an empty remote directory."""

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create a remote directory."""

    @abstractmethod
    def noop(self) -> None:
        """Send a no-content request to keep the session alive."""


def _mlsd_kind(facts: dict[str, str]) -> EntryKind:
    kind = facts.get("type", "").lower()
    if kind in ("dir", "cdir", "pdir"):
        return EntryKind.DIRECTORY
    if kind.startswith("os.unix=symlink") or kind.startswith("os.unix=slink"):
        return EntryKind.LINK
    return EntryKind.FILE


class FTPClient(TransferClient):
    """FTP protocol client using ftplib."""

    def __init__(self, info: ConnectionInfo) -> None:
        super().__init__(info)
        self._ftp: ftplib.FTP | None = None

    def _open(self) -> ftplib.FTP:
        ftp = ftplib.FTP()
        ftp.connect(self._info.host, self._info.effective_port, self._info.timeout)
        ftp.login(self._info.username, self._info.password)
        return ftp

    def connect(self) -> None:
        try:
            self._ftp = self._open()
            if self._info.passive_mode:
                self._ftp.set_pasv(True)
            self._connected = True
            logger.info("Connected to %s:%s", self._info.host, self._info.effective_port)
        except Exception as e:
            self._connected = False
            raise ConnectionError(f"{self._info.protocol.value.upper()} connection failed: {e}") from e

    def disconnect(self) -> None:
        if self._ftp:
            try:
                self._ftp.quit()
            except Exception:
                logger.debug("QUIT failed, closing socket")
                self._ftp.close()
        self._ftp = None
        self._connected = False

    def _ensure_connected(self) -> ftplib.FTP:
        if not self._ftp or not self._connected:
            raise ConnectionError("Not connected")
        return self._ftp

    def list_dir(self, path: str) -> list[Entry]:
        ftp = self._ensure_connected()
        lines: list[str] = []
        ftp.retrlines(f"MLSD {path}", lines.append)
        entries: list[Entry] = []
        for line in lines:
            facts_str, _, name = line.partition("; ")
            name = name.strip()
            if not name or name in (".", ".."):
                continue
            facts: dict[str, str] = {}
            for fact in facts_str.split(";"):
                if "=" in fact:
                    k, v = fact.split("=", 1)
                    facts[k.strip().lower()] = v.strip()
            kind = _mlsd_kind(facts)
            size = int(facts.get("size", "0")) if kind is not EntryKind.DIRECTORY else 0
            entries.append(Entry(name=name, kind=kind, size=size))
        return entries

    def download(self, remote_path: str, local_file: BinaryIO) -> None:
        ftp = self._ensure_connected()
        ftp.retrbinary(f"RETR {remote_path}", local_file.write, BLOCK_SIZE)

    def upload(self, local_file: BinaryIO, remote_path: str) -> None:
        ftp = self._ensure_connected()
        ftp.storbinary(f"STOR {remote_path}", local_file, BLOCK_SIZE)

    def delete(self, path: str) -> None:
        ftp = self._ensure_connected()
        ftp.delete(path)

    def rmdir(self, path: str) -> None:
        ftp = self._ensure_connected()
        ftp.rmd(path)

    def mkdir(self, path: str) -> None:
        ftp = self._ensure_connected()
        ftp.mkd(path)

    def noop(self) -> None:
        ftp = self._ensure_connected()
        ftp.voidcmd("NOOP")


class FTPSClient(FTPClient):
    """FTPS (FTP over SSL/TLS) client."""

    def _open(self) -> ftplib.FTP:
        ftp = ftplib.FTP_TLS(context=ssl.create_default_context())
        ftp.connect(self._info.host, self._info.effective_port, self._info.timeout)
        ftp.login(self._info.username, self._info.password)
        ftp.prot_p()  # encrypt the data connection too
        return ftp


class SFTPClient(TransferClient):
    """SFTP protocol client using paramiko."""

    def __init__(self, info: ConnectionInfo) -> None:
        super().__init__(info)
        self._ssh_client: paramiko.SSHClient | None = None
        self._sftp: paramiko.SFTPClient | None = None

    def _connect_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "hostname": self._info.host,
            "port": self._info.effective_port,
            "username": self._info.username,
            "timeout": self._info.timeout,
            "allow_agent": True,
            "look_for_keys": True,
        }
        if self._info.key_path:
            key_path = os.path.expanduser(self._info.key_path)
            if not os.path.exists(key_path):
                raise ConnectionError(
                    f"SFTP connection failed: key file not found: {self._info.key_path}"
                )
            kwargs.update(key_filename=key_path, allow_agent=False, look_for_keys=False)
        elif self._info.password:
            kwargs["password"] = self._info.password
        return kwargs

    def connect(self) -> None:
        import paramiko

        self._connected = False
        connect_kwargs = self._connect_kwargs()
        try:
            self._ssh_client = paramiko.SSHClient()
            if self._info.host_key_policy is HostKeyPolicy.STRICT:
                self._ssh_client.set_missing_host_key_policy(paramiko.RejectPolicy())
            else:
                self._ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            try:
                self._ssh_client.load_system_host_keys()
            except Exception:
                logger.debug("System host keys could not be loaded; continuing")

            self._ssh_client.connect(**connect_kwargs)
            self._sftp = self._ssh_client.open_sftp()
            self._connected = True
            logger.info("Connected to %s:%s", self._info.host, self._info.effective_port)
        except paramiko.BadHostKeyException as e:
            logger.error("Host key verification failed for %s: %s", self._info.host, e)
            raise ConnectionError(
                f"SFTP connection failed: host key verification failed for {self._info.host}"
            ) from e
        except paramiko.AuthenticationException as e:
            logger.error("SFTP authentication failed for %s", self._info.host)
            raise ConnectionError(f"SFTP connection failed: authentication failed: {e}") from e
        except Exception as e:
            logger.error("SFTP connection to %s failed: %s", self._info.host, e)
            raise ConnectionError(f"SFTP connection failed: {e}") from e

    def disconnect(self) -> None:
        for resource in (self._sftp, self._ssh_client):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                logger.debug("Error while closing SFTP session: %s", e)
        self._sftp = None
        self._ssh_client = None
        self._connected = False

    def _ensure_connected(self) -> paramiko.SFTPClient:
        if not self._ssh_client or not self._sftp:
            raise ConnectionError("Not connected")
        return self._sftp

    def list_dir(self, path: str) -> list[Entry]:
        sftp = self._ensure_connected()
        entries: list[Entry] = []
        for attr in sftp.listdir_attr(path):
            if attr.filename in (".", ".."):
                continue
            mode = attr.st_mode or 0
            if stat.S_ISLNK(mode):
                kind = EntryKind.LINK
            elif stat.S_ISDIR(mode):
                kind = EntryKind.DIRECTORY
            else:
                kind = EntryKind.FILE
            size = 0 if kind is EntryKind.DIRECTORY else attr.st_size or 0
            entries.append(Entry(name=attr.filename, kind=kind, size=size))
        return entries

    def download(self, remote_path: str, local_file: BinaryIO) -> None:
        sftp = self._ensure_connected()
        sftp.getfo(remote_path, local_file)

    def upload(self, local_file: BinaryIO, remote_path: str) -> None:
        sftp = self._ensure_connected()
        sftp.putfo(local_file, remote_path)

    def delete(self, path: str) -> None:
        sftp = self._ensure_connected()
        sftp.remove(path)

    def rmdir(self, path: str) -> None:
        sftp = self._ensure_connected()
        sftp.rmdir(path)

    def mkdir(self, path: str) -> None:
        sftp = self._ensure_connected()
        sftp.mkdir(path)

    def noop(self) -> None:
        sftp = self._ensure_connected()
        sftp.normalize(".")


def create_client(info: ConnectionInfo) -> TransferClient:
    """Factory function to create the appropriate protocol client."""
    clients = {
        Protocol.FTP: FTPClient,
        Protocol.FTPS: FTPSClient,
        Protocol.SFTP: SFTPClient,
    }
    client_class = clients.get(info.protocol)
    if client_class is None:
        raise ValueError(f"Protocol {info.protocol.value} is not supported")
    return client_class(info)
