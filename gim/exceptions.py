# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from typing import Optional

class GimError(Exception):
  """Base class for all error exceptions defined by this package."""
  #pass

class ConfigError(GimError):
  pass

class InvalidAlias(GimError):
  alias: str

  def __init__(self, alias: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"Invalid identity alias '{alias}': only letters, digits, '-' and '_' are allowed"
    super().__init__(msg)
    self.alias = alias

class InvalidEmail(GimError):
  email: str

  def __init__(self, email: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"Invalid email address '{email}'"
    super().__init__(msg)
    self.email = email

class AlreadyExists(GimError):
  alias: str

  def __init__(self, alias: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"Identity '{alias}' already exists"
    super().__init__(msg)
    self.alias = alias

class IdentityNotFound(GimError):
  alias: str

  def __init__(self, alias: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"Identity '{alias}' not found"
    super().__init__(msg)
    self.alias = alias

class RecordParseError(GimError):
  pathname: str

  def __init__(self, pathname: str, msg: str):
    super().__init__(f"Malformed identity record {pathname}: {msg}")
    self.pathname = pathname

class KeyExists(GimError):
  pass

class KeyGenerationFailed(GimError):
  pass

class GitCommandError(GimError):
  pass

class NotInsideRepository(GimError):
  cwd: str

  def __init__(self, cwd: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"The working directory '{cwd}' is not within a git repository"
    super().__init__(msg)
    self.cwd = cwd

class UnsupportedUrlScheme(GimError):
  url: str

  def __init__(self, url: str, msg: Optional[str]=None):
    if msg is None:
      msg = f"Unsupported repository URL '{url}': expected git@github.com:<org>/<repo>[.git]"
    super().__init__(msg)
    self.url = url

class CloneFailed(GimError):
  pass

class PostCloneSwitchFailed(GimError):
  destination: str

  def __init__(self, destination: str, msg: str):
    super().__init__(f"Cloned into '{destination}', but could not switch identity: {msg}")
    self.destination = destination
