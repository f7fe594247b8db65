# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SSH keypair provisioning for identities.

Keys are generated without a passphrase so that git operations never
prompt; the private key file is protected only by its file mode.
"""

from typing import Optional, List, Sequence, Callable, Tuple

import os
import logging
import subprocess

from .exceptions import KeyExists, KeyGenerationFailed
from .identity import validate_alias
from .constants import GIM_DEFAULT_KEY_TYPE
from .util import make_private_dir, file_contents, run_cmd

logger = logging.getLogger(__name__)

# Runs a command and returns (exit_code, stdout, stderr); replaceable in tests
CommandRunner = Callable[[Sequence[str]], Tuple[int, str, str]]

class KeyProvisioner:
  _ssh_dir: str
  _key_type: str
  _run: CommandRunner

  def __init__(self, ssh_dir: str, key_type: str=GIM_DEFAULT_KEY_TYPE, runner: Optional[CommandRunner]=None):
    self._ssh_dir = ssh_dir
    self._key_type = key_type
    self._run = run_cmd if runner is None else runner

  @property
  def ssh_dir(self) -> str:
    return self._ssh_dir

  @property
  def key_type(self) -> str:
    return self._key_type

  def private_key_path(self, alias: str, algorithm: Optional[str]=None) -> str:
    if algorithm is None:
      algorithm = self._key_type
    return os.path.join(self._ssh_dir, f"id_{algorithm}_{validate_alias(alias)}")

  def public_key_path(self, alias: str, algorithm: Optional[str]=None) -> str:
    return self.private_key_path(alias, algorithm=algorithm) + '.pub'

  def exists(self, alias: str, algorithm: Optional[str]=None) -> bool:
    return os.path.isfile(self.private_key_path(alias, algorithm=algorithm))

  def generate(self, alias: str, email: str, algorithm: Optional[str]=None, overwrite: bool=False) -> str:
    """Generates a passphrase-less keypair for an identity

    Args:
        alias (str): The identity alias; names the key files
        email (str): Used as the public key comment
        algorithm (Optional[str], optional): ssh-keygen key type. Defaults to the configured type.
        overwrite (bool, optional): Replace an existing keypair. Defaults to False.

    Raises:
        KeyExists: A keypair already exists and overwrite is False
        KeyGenerationFailed: ssh-keygen failed or could not be run

    Returns:
        str: The path of the private key
    """
    if algorithm is None:
      algorithm = self._key_type
    private_path = self.private_key_path(alias, algorithm=algorithm)
    public_path = private_path + '.pub'
    if os.path.exists(private_path) or os.path.exists(public_path):
      if not overwrite:
        raise KeyExists(f"An SSH key already exists at {private_path}")
      for pathname in (private_path, public_path):
        if os.path.exists(pathname):
          os.remove(pathname)
    make_private_dir(self._ssh_dir)
    cmd = [ 'ssh-keygen', '-t', algorithm, '-C', email, '-f', private_path, '-N', '', '-q' ]
    try:
      exit_code, stdout_s, stderr_s = self._run(cmd)
    except (OSError, subprocess.SubprocessError) as ex:
      raise KeyGenerationFailed(f"Unable to run ssh-keygen: {ex}") from ex
    if exit_code != 0:
      msg = (stderr_s.strip() or stdout_s.strip()) or f"exit code {exit_code}"
      raise KeyGenerationFailed(f"ssh-keygen failed for '{alias}': {msg}")
    if not os.path.isfile(private_path):
      raise KeyGenerationFailed(f"ssh-keygen did not create {private_path}")
    logger.debug("Generated %s key %s", algorithm, private_path)
    return private_path

  def read_public_key(self, alias: str, algorithm: Optional[str]=None) -> Optional[str]:
    pathname = self.public_key_path(alias, algorithm=algorithm)
    if not os.path.isfile(pathname):
      return None
    return file_contents(pathname).strip()

  def delete(self, alias: str, algorithm: Optional[str]=None) -> List[str]:
    """Removes an identity's key files; returns the paths actually removed"""
    private_path = self.private_key_path(alias, algorithm=algorithm)
    removed: List[str] = []
    for pathname in (private_path, private_path + '.pub'):
      try:
        os.remove(pathname)
      except FileNotFoundError:
        continue
      removed.append(pathname)
    return removed
