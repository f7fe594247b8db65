# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Concurrent health checks over all stored identities.

Each identity gets one worker that checks, in order, its private key file,
its SSH config Host block and a live SSH authentication probe. Workers only
write to their own result object; the coordinator waits for all of them and
reports in enumeration order.
"""

from typing import Optional, List

import logging
import concurrent.futures

from .internal_types import JsonableDict
from .identity import Identity
from .store import IdentityStore
from .keys import KeyProvisioner
from .ssh_config import SshConfigFile
from .prober import SshProber, ProbeResult, PROBE_AUTH_FAILED
from .exceptions import GimError
from .constants import GIM_DEFAULT_SSH_CONNECT_TIMEOUT, GIM_MAX_AUDIT_WORKERS

logger = logging.getLogger(__name__)

class IdentityHealth:
  alias: str
  identity: Optional[Identity] = None
  key_ok: bool = False
  config_ok: bool = False
  connection: Optional[ProbeResult] = None
  public_key: Optional[str] = None
  error: Optional[str] = None

  def __init__(self, alias: str):
    self.alias = alias

  @property
  def connection_ok(self) -> bool:
    return not self.connection is None and self.connection.ok

  @property
  def healthy(self) -> bool:
    return self.key_ok and self.config_ok and self.connection_ok

  def as_jsonable(self) -> JsonableDict:
    result: JsonableDict = dict(
        alias=self.alias,
        healthy=self.healthy,
        key=self.key_ok,
        config=self.config_ok,
        connection=None if self.connection is None else self.connection.status,
      )
    if not self.identity is None:
      result.update(name=self.identity.name, email=self.identity.email, host=self.identity.host_alias)
    if not self.public_key is None:
      result['public_key'] = self.public_key
    if not self.error is None:
      result['error'] = self.error
    return result

class AuditReport:
  identities: List[IdentityHealth]

  def __init__(self, identities: List[IdentityHealth]):
    self.identities = identities

  @property
  def healthy(self) -> bool:
    return all(x.healthy for x in self.identities)

  @property
  def has_issues(self) -> bool:
    return not self.healthy

  @property
  def num_healthy(self) -> int:
    return sum(1 for x in self.identities if x.healthy)

  def as_jsonable(self) -> JsonableDict:
    return dict(
        healthy=self.healthy,
        identities=[ x.as_jsonable() for x in self.identities ],
      )

class HealthAuditor:
  _store: IdentityStore
  _keys: KeyProvisioner
  _ssh_config: SshConfigFile
  _prober: SshProber
  _timeout: float
  _max_workers: Optional[int]

  def __init__(
        self,
        store: IdentityStore,
        keys: KeyProvisioner,
        ssh_config: SshConfigFile,
        prober: Optional[SshProber]=None,
        timeout: float=GIM_DEFAULT_SSH_CONNECT_TIMEOUT,
        max_workers: Optional[int]=None
      ):
    self._store = store
    self._keys = keys
    self._ssh_config = ssh_config
    self._prober = SshProber() if prober is None else prober
    self._timeout = timeout
    self._max_workers = max_workers

  def check_identity(self, alias: str, include_public_keys: bool=False) -> IdentityHealth:
    """Runs the key, config and connection checks for one identity, in that order

    A check that raises counts as failed; the error text is kept in the result.
    """
    result = IdentityHealth(alias)
    try:
      identity = self._store.read(alias)
    except (GimError, OSError) as ex:
      result.error = str(ex)
      return result
    result.identity = identity
    result.key_ok = self._keys.exists(alias)
    if include_public_keys:
      try:
        result.public_key = self._keys.read_public_key(alias)
      except (OSError, ValueError) as ex:
        result.error = f"Unable to read public key: {ex}"
    try:
      result.config_ok = self._ssh_config.has_host_block(identity.host_alias)
    except (OSError, ValueError) as ex:
      result.error = f"Unable to read {self._ssh_config.pathname}: {ex}"
    try:
      result.connection = self._prober.probe(identity.host_alias, timeout=self._timeout)
    except (GimError, OSError, ValueError) as ex:
      result.connection = ProbeResult(PROBE_AUTH_FAILED, str(ex))
    logger.debug("Checked %s: key=%s config=%s connection=%s",
        alias, result.key_ok, result.config_ok, result.connection.status)
    return result

  def audit(self, include_public_keys: bool=False) -> AuditReport:
    aliases = self._store.list()
    if len(aliases) == 0:
      return AuditReport([])
    max_workers = self._max_workers
    if max_workers is None:
      max_workers = min(len(aliases), GIM_MAX_AUDIT_WORKERS)
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
      futures = [
          executor.submit(self.check_identity, alias, include_public_keys)
          for alias in aliases
        ]
      # Collected in submission order, not completion order
      results = [ f.result() for f in futures ]
    return AuditReport(results)
