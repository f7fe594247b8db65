# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""gim configuration"""

from typing import Optional, Mapping, Dict

import os
import logging
import yaml
try:
  from yaml import CSafeLoader as SafeLoader
except ImportError:
  from yaml import SafeLoader  #type: ignore[misc]

from .internal_types import JsonableDict
from .exceptions import ConfigError
from .constants import (
    GIM_DEFAULT_CONFIG_DIR,
    GIM_CONFIG_FILENAME,
    GIM_IDENTITIES_DIRNAME,
    GIM_DEFAULT_SSH_DIR,
    GIM_SSH_CONFIG_FILENAME,
    GIM_DEFAULT_KEY_TYPE,
    GIM_DEFAULT_SSH_CONNECT_TIMEOUT,
    GIM_DEFAULT_GIT_HOST,
    GIM_DEFAULT_GIT_USER,
  )
from .util import expand_path, file_contents

logger = logging.getLogger(__name__)

_known_keys = (
    'config_dir',
    'ssh_dir',
    'ssh_config_file',
    'key_type',
    'ssh_connect_timeout',
    'git_host',
    'git_user',
    'max_workers',
  )

_env_overrides: Dict[str, str] = dict(
    config_dir='GIM_CONFIG_DIR',
    ssh_dir='GIM_SSH_DIR',
    ssh_config_file='GIM_SSH_CONFIG',
    key_type='GIM_KEY_TYPE',
    ssh_connect_timeout='GIM_SSH_TIMEOUT',
  )

def locate_gim_config_file(config_path: Optional[str]=None, environ: Optional[Mapping[str, str]]=None) -> Optional[str]:
  """Finds the gim config file, if any

  An explicitly provided path (argument or $GIM_CONFIG) must exist. Otherwise
  the default location is used if a file exists there.

  Returns:
      Optional[str]: Absolute path of the config file, or None if there is none
  """
  if environ is None:
    environ = os.environ
  if config_path is None:
    config_path = environ.get('GIM_CONFIG', None)
    if config_path == '':
      config_path = None
  if not config_path is None:
    result = expand_path(config_path)
    if not os.path.isfile(result):
      raise ConfigError(f"gim: Config file not found: '{config_path}'")
    return result
  default_file = expand_path(os.path.join(GIM_DEFAULT_CONFIG_DIR, GIM_CONFIG_FILENAME))
  if os.path.isfile(default_file):
    return default_file
  return None

class GimConfig:
  _config_file: Optional[str] = None
  _config_data: JsonableDict
  _config_dir: str
  _ssh_dir: str
  _ssh_config_file: str
  _key_type: str
  _ssh_connect_timeout: float
  _git_host: str
  _git_user: str
  _max_workers: Optional[int] = None

  def __init__(
        self,
        config_path: Optional[str]=None,
        environ: Optional[Mapping[str, str]]=None,
        load_file: bool=True,
        **overrides
      ):
    if environ is None:
      environ = os.environ
    data: JsonableDict = {}
    if load_file:
      self._config_file = locate_gim_config_file(config_path=config_path, environ=environ)
      if not self._config_file is None:
        logger.debug("Loading config file %s", self._config_file)
        try:
          loaded = yaml.load(file_contents(self._config_file), Loader=SafeLoader)
        except yaml.YAMLError as ex:
          raise ConfigError(f"gim: Config file {self._config_file} is not valid YAML: {ex}") from ex
        if loaded is None:
          loaded = {}
        if not isinstance(loaded, dict):
          raise ConfigError(f"gim: Config file {self._config_file} must contain a mapping")
        data.update(loaded)
    for key, env_var in _env_overrides.items():
      value = environ.get(env_var, '')
      if value != '':
        data[key] = value
    for key, value in overrides.items():
      if not value is None:
        data[key] = value
    for key in data:
      if not key in _known_keys:
        raise ConfigError(f"gim: Unknown configuration setting '{key}'")
    self._config_data = data

    self._config_dir = expand_path(self._get_str('config_dir', GIM_DEFAULT_CONFIG_DIR))
    self._ssh_dir = expand_path(self._get_str('ssh_dir', GIM_DEFAULT_SSH_DIR))
    self._ssh_config_file = expand_path(
        self._get_str('ssh_config_file', os.path.join(self._ssh_dir, GIM_SSH_CONFIG_FILENAME)))
    self._key_type = self._get_str('key_type', GIM_DEFAULT_KEY_TYPE)
    self._git_host = self._get_str('git_host', GIM_DEFAULT_GIT_HOST)
    self._git_user = self._get_str('git_user', GIM_DEFAULT_GIT_USER)
    timeout = data.get('ssh_connect_timeout', GIM_DEFAULT_SSH_CONNECT_TIMEOUT)
    try:
      self._ssh_connect_timeout = float(timeout)  # type: ignore[arg-type]
    except (TypeError, ValueError) as ex:
      raise ConfigError(f"gim: ssh_connect_timeout must be a number: {timeout!r}") from ex
    if self._ssh_connect_timeout <= 0:
      raise ConfigError(f"gim: ssh_connect_timeout must be positive: {timeout!r}")
    max_workers = data.get('max_workers', None)
    if not max_workers is None:
      if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
        raise ConfigError(f"gim: max_workers must be a positive integer: {max_workers!r}")
      self._max_workers = max_workers

  def _get_str(self, key: str, default: str) -> str:
    value = self._config_data.get(key, default)
    if not isinstance(value, str) or value == '':
      raise ConfigError(f"gim: Configuration setting '{key}' must be a non-empty string")
    return value

  @property
  def config_file(self) -> Optional[str]:
    return self._config_file

  @property
  def config_data(self) -> JsonableDict:
    return self._config_data

  @property
  def config_dir(self) -> str:
    return self._config_dir

  @property
  def identities_dir(self) -> str:
    return os.path.join(self._config_dir, GIM_IDENTITIES_DIRNAME)

  @property
  def ssh_dir(self) -> str:
    return self._ssh_dir

  @property
  def ssh_config_file(self) -> str:
    return self._ssh_config_file

  @property
  def key_type(self) -> str:
    return self._key_type

  @property
  def ssh_connect_timeout(self) -> float:
    return self._ssh_connect_timeout

  @property
  def git_host(self) -> str:
    return self._git_host

  @property
  def git_user(self) -> str:
    return self._git_user

  @property
  def host_alias_prefix(self) -> str:
    """The prefix of generated SSH host aliases; 'github-' for github.com"""
    return self._git_host.split('.', 1)[0] + '-'

  @property
  def max_workers(self) -> Optional[int]:
    return self._max_workers
