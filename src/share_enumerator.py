import json
import logging
import os
import re
import socket
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple
from impacket.smbconnection import SMBConnection, SessionError
from impacket.dcerpc.v5 import transport, srvs
from errors import EnumerationError, SnapshotError
from models import ShareRecord

logger = logging.getLogger(__name__)

ADMIN_DRIVE_SHARE = re.compile(r'^[A-Za-z]\$$')
LOCAL_HOSTS = ('localhost', '127.0.0.1', '::1', '.')

ShareLister = Callable[[], Iterable[Tuple[str, str]]]

def is_administrative_share(name: str) -> bool:
    """Drive shares such as C$ that Windows creates for administrators"""
    return bool(ADMIN_DRIVE_SHARE.match(name))

def resolve_hostname(host: str) -> str:
    """Name used in snapshot file names"""
    if not host or host.lower() in LOCAL_HOSTS:
        return socket.gethostname()
    return host

class SMBShareLister:
    """Reads a host's share table through the SRVSVC NetrShareEnum call"""

    def __init__(self, host: str, username: Optional[str] = None, password: Optional[str] = None,
                 domain: str = "", port: int = 445):
        self.host = host
        self.username = username
        self.password = password or ""
        self.domain = domain
        self.port = port

    def resolve_host(self) -> str:
        """Resolve hostname to IP address"""
        try:
            socket.inet_aton(self.host)
            return self.host
        except socket.error:
            pass
        try:
            return socket.gethostbyname(self.host)
        except socket.gaierror as e:
            raise EnumerationError(f"Could not resolve host {self.host}: {str(e)}") from e

    def _login(self, smb: SMBConnection) -> None:
        # NetrShareEnum level 2 needs an administrator, so supplied credentials win
        if not self.username:
            try:
                smb.login('', '')
                logger.debug("Connected to %s with a null session", self.host)
                return
            except SessionError as e:
                raise EnumerationError(f"Authentication failed: {str(e)}") from e

        if '\\' in self.username:
            domain, username = self.username.split('\\', 1)
        else:
            domain, username = self.domain, self.username
        try:
            smb.login(username, self.password, domain)
            logger.debug("Connected to %s as %s\\%s", self.host, domain, username)
        except SessionError as e:
            raise EnumerationError(f"Authentication failed: {str(e)}") from e

    def __call__(self) -> List[Tuple[str, str]]:
        ip = self.resolve_host()
        smb = None
        try:
            smb = SMBConnection(self.host, ip, sess_port=self.port)
            self._login(smb)

            rpctransport = transport.SMBTransport(ip, filename=r'\srvsvc', smb_connection=smb)
            dce = rpctransport.get_dce_rpc()
            dce.connect()
            try:
                dce.bind(srvs.MSRPC_UUID_SRVS)
                resp = srvs.hNetrShareEnum(dce, 2)
            finally:
                dce.disconnect()

            shares = []
            for share in resp['InfoStruct']['ShareInfo']['Level2']['Buffer']:
                if (share['shi2_type'] & srvs.STYPE_MASK) != srvs.STYPE_DISKTREE:
                    continue
                # Strings come back NUL terminated
                name = share['shi2_netname'][:-1]
                path = share['shi2_path'][:-1]
                shares.append((name, path))
            return shares
        except EnumerationError:
            raise
        except Exception as e:
            raise EnumerationError(f"Failed to enumerate shares on {self.host}: {str(e)}") from e
        finally:
            if smb:
                try:
                    smb.logoff()
                except Exception as e:
                    logger.debug("Error closing SMB session: %s", e)

def list_shares(lister: ShareLister, exclude: Iterable[str] = (),
                skip_admin_drives: bool = True) -> List[ShareRecord]:
    """List the host's shares minus the denylist, in the order the host reports them"""
    denied = {name.lower() for name in exclude}
    try:
        entries = list(lister())
    except EnumerationError:
        raise
    except Exception as e:
        raise EnumerationError(f"Share enumeration failed: {str(e)}") from e

    records = []
    for name, path in entries:
        if name.lower() in denied:
            logger.debug("Excluding share %s", name)
            continue
        if skip_admin_drives and is_administrative_share(name):
            logger.debug("Excluding administrative share %s", name)
            continue
        records.append(ShareRecord(name=name, path=path))
    return records

def snapshot_path(directory, hostname: str) -> Path:
    return Path(directory) / f"shares_{hostname}.json"

def write_snapshot(records: List[ShareRecord], destination: Path) -> Path:
    """Write records as a JSON array, replacing any previous snapshot"""
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix='.shares_', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump([r.to_dict() for r in records], f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, destination)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise SnapshotError(f"Unable to write snapshot {destination}: {str(e)}") from e
    return destination

def create_snapshot(directory, exclude: Iterable[str], lister: ShareLister,
                    hostname: str, skip_admin_drives: bool = True) -> Path:
    """Enumerate shares and persist their names and paths to shares_<hostname>.json"""
    records = list_shares(lister, exclude, skip_admin_drives)
    destination = write_snapshot(records, snapshot_path(directory, hostname))
    logger.info("Wrote %d shares to %s", len(records), destination)
    return destination

def load_snapshot(path) -> List[ShareRecord]:
    """Read a snapshot written by create_snapshot"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"Snapshot not found: {path}") from e
    except (OSError, ValueError) as e:
        raise SnapshotError(f"Unable to read snapshot {path}: {str(e)}") from e

    # A single share may have been serialized as a bare object
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise SnapshotError(f"Snapshot {path} does not contain a list of shares")

    try:
        return [ShareRecord.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        raise SnapshotError(f"Malformed share entry in {path}: {str(e)}") from e
