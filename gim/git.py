# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Thin wrapper around the git command line"""

from typing import Optional, List, Tuple, Sequence

import os
import logging
import subprocess

from .exceptions import GitCommandError, NotInsideRepository
from .util import run_cmd

logger = logging.getLogger(__name__)

class GitClient:
  """Runs git subprocesses. Subclass or replace to avoid touching real repositories."""

  _git_prog: str

  def __init__(self, git_prog: str='git'):
    self._git_prog = git_prog

  def _git(self, args: Sequence[str], cwd: Optional[str]=None) -> Tuple[int, str, str]:
    cmd = [ self._git_prog ] + list(args)
    try:
      return run_cmd(cmd, cwd=cwd)
    except OSError as ex:
      raise GitCommandError(f"Unable to run {self._git_prog}: {ex}") from ex

  def _check_git(self, args: Sequence[str], cwd: Optional[str]=None) -> str:
    exit_code, stdout_s, stderr_s = self._git(args, cwd=cwd)
    if exit_code != 0:
      raise GitCommandError(f"git {' '.join(args)} failed with exit code {exit_code}: {stderr_s.strip()}")
    return stdout_s

  def get_root_dir(self, cwd: Optional[str]=None) -> Optional[str]:
    """Returns the top of the working tree containing cwd, or None if not in one"""
    if not cwd is None and not os.path.isdir(cwd):
      return None
    exit_code, stdout_s, _ = self._git([ 'rev-parse', '--show-toplevel' ], cwd=cwd)
    if exit_code != 0:
      return None
    result = stdout_s.strip()
    return None if result == '' else result

  def is_inside_work_tree(self, cwd: Optional[str]=None) -> bool:
    return not self.get_root_dir(cwd=cwd) is None

  def require_work_tree(self, cwd: Optional[str]=None) -> str:
    result = self.get_root_dir(cwd=cwd)
    if result is None:
      raise NotInsideRepository(os.path.abspath('.' if cwd is None else cwd))
    return result

  def get_config_value(self, key: str, cwd: Optional[str]=None) -> Optional[str]:
    """Returns the effective value of a git config key, or None if it is unset"""
    exit_code, stdout_s, stderr_s = self._git([ 'config', '--get', key ], cwd=cwd)
    if exit_code == 1:
      return None
    if exit_code != 0:
      raise GitCommandError(f"git config --get {key} failed with exit code {exit_code}: {stderr_s.strip()}")
    return stdout_s.rstrip('\n')

  def set_local_config_value(self, key: str, value: str, cwd: Optional[str]=None) -> None:
    self._check_git([ 'config', '--local', key, value ], cwd=cwd)

  def list_remotes(self, cwd: Optional[str]=None) -> List[Tuple[str, str]]:
    """Returns (name, fetch URL) for every configured remote"""
    names = [ x for x in self._check_git([ 'remote' ], cwd=cwd).splitlines() if x != '' ]
    result: List[Tuple[str, str]] = []
    for name in names:
      url = self.get_config_value(f"remote.{name}.url", cwd=cwd)
      if not url is None:
        result.append((name, url))
    return result

  def set_remote_url(self, name: str, url: str, cwd: Optional[str]=None) -> None:
    self._check_git([ 'remote', 'set-url', name, url ], cwd=cwd)

  def clone(
        self,
        url: str,
        destination: str,
        extra_args: Optional[Sequence[str]]=None,
        cwd: Optional[str]=None
      ) -> None:
    """Runs git clone, letting git's progress output go to the terminal

    Raises:
        GitCommandError: The clone failed; the message includes git's output
    """
    cmd = [ self._git_prog, 'clone' ] + list(extra_args or []) + [ url, destination ]
    logger.debug("Running %s (cwd=%s)", cmd, cwd)
    try:
      with subprocess.Popen(cmd, cwd=cwd, stderr=subprocess.PIPE) as proc:
        (_, stderr_bytes) = proc.communicate()
        exit_code = proc.returncode
    except OSError as ex:
      raise GitCommandError(f"Unable to run {self._git_prog}: {ex}") from ex
    if exit_code != 0:
      stderr_s = stderr_bytes.decode('utf-8', errors='replace').strip()
      raise GitCommandError(stderr_s or f"git clone exited with code {exit_code}")
