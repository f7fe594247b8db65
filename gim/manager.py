# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Creation and removal of identities.

An identity spans three artifacts: its record, its keypair and its SSH config
Host block. Validation happens before anything is written; a failure part way
through is reported as-is and nothing is rolled back.
"""

from typing import Optional, List, Callable

import logging

from .identity import Identity, validate_alias, validate_email, make_host_alias
from .store import IdentityStore
from .keys import KeyProvisioner
from .ssh_config import SshConfigFile
from .exceptions import AlreadyExists, IdentityNotFound, KeyExists
from .constants import GIM_DEFAULT_GIT_HOST, GIM_DEFAULT_GIT_USER

logger = logging.getLogger(__name__)

class RemoveResult:
  alias: str
  record_removed: bool
  keys_removed: List[str]
  config_removed: bool

  def __init__(self, alias: str, record_removed: bool, keys_removed: List[str], config_removed: bool):
    self.alias = alias
    self.record_removed = record_removed
    self.keys_removed = keys_removed
    self.config_removed = config_removed

  @property
  def found(self) -> bool:
    return self.record_removed or len(self.keys_removed) > 0 or self.config_removed

class IdentityManager:
  _store: IdentityStore
  _keys: KeyProvisioner
  _ssh_config: SshConfigFile
  _git_host: str
  _git_user: str
  _host_alias_prefix: str

  def __init__(
        self,
        store: IdentityStore,
        keys: KeyProvisioner,
        ssh_config: SshConfigFile,
        git_host: str=GIM_DEFAULT_GIT_HOST,
        git_user: str=GIM_DEFAULT_GIT_USER,
        host_alias_prefix: Optional[str]=None
      ):
    self._store = store
    self._keys = keys
    self._ssh_config = ssh_config
    self._git_host = git_host
    self._git_user = git_user
    if host_alias_prefix is None:
      host_alias_prefix = git_host.split('.', 1)[0] + '-'
    self._host_alias_prefix = host_alias_prefix

  @property
  def store(self) -> IdentityStore:
    return self._store

  @property
  def keys(self) -> KeyProvisioner:
    return self._keys

  @property
  def ssh_config(self) -> SshConfigFile:
    return self._ssh_config

  def add(
        self,
        alias: str,
        name: str,
        email: str,
        confirm_overwrite: Optional[Callable[[str], bool]]=None
      ) -> Identity:
    """Creates an identity: keypair, then record, then SSH config Host block

    Args:
        confirm_overwrite (Optional[Callable[[str], bool]], optional):
            Called with the existing private key path when the identity's keypair
            already exists; returning False (or passing None) aborts before any change.

    Raises:
        InvalidAlias, InvalidEmail, AlreadyExists: Rejected before any mutation
        KeyExists: A keypair exists and overwriting was not confirmed
        KeyGenerationFailed: ssh-keygen failed

    Returns:
        Identity: The new identity
    """
    validate_alias(alias)
    validate_email(email)
    if self._store.exists(alias):
      raise AlreadyExists(alias)
    overwrite = False
    if self._keys.exists(alias):
      key_path = self._keys.private_key_path(alias)
      if confirm_overwrite is None or not confirm_overwrite(key_path):
        raise KeyExists(f"An SSH key already exists at {key_path}; not overwriting")
      overwrite = True
    key_path = self._keys.generate(alias, email, overwrite=overwrite)
    identity = self._store.create(alias, name, email)
    self._ssh_config.upsert_host_block(
        identity.host_alias, key_path, hostname=self._git_host, user=self._git_user)
    logger.debug("Added identity %s", alias)
    return identity

  def remove(self, alias: str) -> RemoveResult:
    """Removes an identity's record, key files and SSH config Host block

    Raises:
        IdentityNotFound: None of the three artifacts existed
    """
    validate_alias(alias)
    record_removed = self._store.delete(alias)
    keys_removed = self._keys.delete(alias)
    config_removed = self._ssh_config.remove_host_block(make_host_alias(alias, prefix=self._host_alias_prefix))
    result = RemoveResult(alias, record_removed, keys_removed, config_removed)
    if not result.found:
      raise IdentityNotFound(alias)
    logger.debug("Removed identity %s", alias)
    return result

  def remove_all(self) -> List[RemoveResult]:
    """Removes every identity, plus any leftover Host blocks carrying the gim host alias prefix"""
    results: List[RemoveResult] = []
    for alias in self._store.list():
      results.append(self.remove(alias))
    for host_alias in self._ssh_config.list_host_aliases(prefix=self._host_alias_prefix):
      alias = host_alias[len(self._host_alias_prefix):]
      logger.debug("Removing stray Host block %s", host_alias)
      self._ssh_config.remove_host_block(host_alias)
      results.append(RemoveResult(alias, False, [], True))
    return results
