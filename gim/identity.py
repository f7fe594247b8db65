# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A git author / SSH key persona.

An identity is keyed by its alias, which also names its record file,
its keypair and the SSH host alias that routes git traffic to its key.
"""

from typing import Any

import re

from .internal_types import JsonableDict
from .exceptions import InvalidAlias, InvalidEmail
from .constants import GIM_DEFAULT_GIT_HOST

DEFAULT_HOST_ALIAS_PREFIX = GIM_DEFAULT_GIT_HOST.split('.', 1)[0] + '-'

_alias_re = re.compile(r'^[A-Za-z0-9_-]+$')
_email_re = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

def is_valid_alias(alias: str) -> bool:
  return isinstance(alias, str) and not _alias_re.match(alias) is None

def is_valid_email(email: str) -> bool:
  """Loose check: something before an '@', and a '.' inside the domain part"""
  if not isinstance(email, str) or _email_re.match(email) is None:
    return False
  domain = email.split('@', 1)[1]
  return not (domain.startswith('.') or domain.endswith('.'))

def validate_alias(alias: str) -> str:
  if not is_valid_alias(alias):
    raise InvalidAlias(alias)
  return alias

def validate_email(email: str) -> str:
  if not is_valid_email(email):
    raise InvalidEmail(email)
  return email

def make_host_alias(alias: str, prefix: str=DEFAULT_HOST_ALIAS_PREFIX) -> str:
  return prefix + alias

class Identity:
  _alias: str
  _name: str
  _email: str
  _host_alias: str

  def __init__(self, alias: str, name: str, email: str, host_alias_prefix: str=DEFAULT_HOST_ALIAS_PREFIX):
    self._alias = validate_alias(alias)
    self._name = name
    self._email = validate_email(email)
    self._host_alias = make_host_alias(alias, prefix=host_alias_prefix)

  @property
  def alias(self) -> str:
    return self._alias

  @property
  def name(self) -> str:
    """The git user.name of this identity"""
    return self._name

  @property
  def email(self) -> str:
    return self._email

  @property
  def host_alias(self) -> str:
    """The SSH config 'Host' name that routes to this identity's key"""
    return self._host_alias

  def matches_author(self, name: str, email: str) -> bool:
    return self._name == name and self._email == email

  def to_record(self) -> JsonableDict:
    return dict(name=self._name, email=self._email, host=self._host_alias)

  def __eq__(self, other: Any) -> bool:
    if not isinstance(other, Identity):
      return NotImplemented
    return (self._alias, self._name, self._email, self._host_alias) == (
        other._alias, other._name, other._email, other._host_alias)

  def __hash__(self) -> int:
    return hash((self._alias, self._name, self._email, self._host_alias))

  def __repr__(self) -> str:
    return f"Identity(alias={self._alias!r}, name={self._name!r}, email={self._email!r})"
