# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Identity record store.

One YAML file per identity, named <alias>.yaml, in a private directory.
Nothing is cached; every call goes to the disk.
"""

from typing import List, Optional

import os
import logging
import yaml
try:
  from yaml import CSafeLoader as SafeLoader, CSafeDumper as SafeDumper
except ImportError:
  from yaml import SafeLoader, SafeDumper  #type: ignore[misc]

from .identity import Identity, is_valid_alias, validate_alias, validate_email, DEFAULT_HOST_ALIAS_PREFIX
from .exceptions import AlreadyExists, IdentityNotFound, InvalidAlias, InvalidEmail, RecordParseError
from .constants import GIM_RECORD_EXTENSION
from .util import make_private_dir, file_contents, set_owner_read_write_only

logger = logging.getLogger(__name__)

_record_fields = ('name', 'email', 'host')

class IdentityStore:
  _identities_dir: str
  _host_alias_prefix: str

  def __init__(self, identities_dir: str, host_alias_prefix: str=DEFAULT_HOST_ALIAS_PREFIX):
    self._identities_dir = identities_dir
    self._host_alias_prefix = host_alias_prefix

  @property
  def identities_dir(self) -> str:
    return self._identities_dir

  def record_path(self, alias: str) -> str:
    return os.path.join(self._identities_dir, alias + GIM_RECORD_EXTENSION)

  def exists(self, alias: str) -> bool:
    return os.path.isfile(self.record_path(validate_alias(alias)))

  def create(self, alias: str, name: str, email: str) -> Identity:
    """Persists a new identity record

    Raises:
        InvalidAlias: The alias contains characters other than letters, digits, '-' and '_'
        InvalidEmail: The email address is not plausibly valid
        AlreadyExists: A record for the alias is already present

    Returns:
        Identity: The new identity
    """
    validate_alias(alias)
    validate_email(email)
    identity = Identity(alias, name, email, host_alias_prefix=self._host_alias_prefix)
    pathname = self.record_path(alias)
    make_private_dir(self._identities_dir)
    text = yaml.dump(identity.to_record(), Dumper=SafeDumper, default_flow_style=False, sort_keys=False)
    try:
      # 'x' mode keeps an existing record untouched
      with open(pathname, 'x', encoding='utf-8') as f:
        f.write(text)
    except FileExistsError as ex:
      raise AlreadyExists(alias) from ex
    set_owner_read_write_only(pathname)
    logger.debug("Created identity record %s", pathname)
    return identity

  def read(self, alias: str) -> Identity:
    validate_alias(alias)
    pathname = self.record_path(alias)
    try:
      text = file_contents(pathname)
    except FileNotFoundError as ex:
      raise IdentityNotFound(alias) from ex
    except UnicodeDecodeError as ex:
      raise RecordParseError(pathname, f"not valid UTF-8: {ex}") from ex
    return self._parse_record(alias, pathname, text)

  def _parse_record(self, alias: str, pathname: str, text: str) -> Identity:
    try:
      data = yaml.load(text, Loader=SafeLoader)
    except yaml.YAMLError as ex:
      raise RecordParseError(pathname, f"not valid YAML: {ex}") from ex
    if not isinstance(data, dict):
      raise RecordParseError(pathname, "expected a mapping of name, email and host")
    for key in data:
      if not key in _record_fields:
        raise RecordParseError(pathname, f"unexpected field '{key}'")
    for key in _record_fields:
      if not key in data:
        raise RecordParseError(pathname, f"missing field '{key}'")
      if not isinstance(data[key], str):
        raise RecordParseError(pathname, f"field '{key}' must be a string")
    try:
      identity = Identity(alias, data['name'], data['email'], host_alias_prefix=self._host_alias_prefix)
    except (InvalidAlias, InvalidEmail) as ex:
      raise RecordParseError(pathname, str(ex)) from ex
    if data['host'] != identity.host_alias:
      raise RecordParseError(pathname, f"host '{data['host']}' does not match expected '{identity.host_alias}'")
    return identity

  def list(self) -> List[str]:
    """Returns the aliases of all stored identities, sorted"""
    if not os.path.isdir(self._identities_dir):
      return []
    result: List[str] = []
    for filename in os.listdir(self._identities_dir):
      if filename.endswith(GIM_RECORD_EXTENSION):
        alias = filename[:-len(GIM_RECORD_EXTENSION)]
        if is_valid_alias(alias) and os.path.isfile(os.path.join(self._identities_dir, filename)):
          result.append(alias)
    result.sort()
    return result

  def list_identities(self) -> List[Identity]:
    return [ self.read(alias) for alias in self.list() ]

  def find(self, alias: str) -> Optional[Identity]:
    try:
      return self.read(alias)
    except IdentityNotFound:
      return None

  def delete(self, alias: str) -> bool:
    """Removes an identity record; returns True if a record existed"""
    pathname = self.record_path(validate_alias(alias))
    try:
      os.remove(pathname)
    except FileNotFoundError:
      return False
    logger.debug("Deleted identity record %s", pathname)
    return True
