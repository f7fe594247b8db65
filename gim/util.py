# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Miscellaneous utility functions"""

from typing import Optional, List, Tuple, Mapping, Sequence

import os
import stat
import logging
import subprocess

logger = logging.getLogger(__name__)

def expand_path(pathname: str, cwd: Optional[str]=None) -> str:
  if cwd is None:
    cwd = '.'
  return os.path.abspath(os.path.join(cwd, os.path.expanduser(pathname)))

def file_contents(pathname: str) -> str:
  with open(pathname, encoding='utf-8') as f:
    result = f.read()
  return result

def make_private_dir(dirname: str) -> None:
  """Creates a directory (and parents) readable only by the owner, if it does not exist"""
  if not os.path.isdir(dirname):
    os.makedirs(dirname, mode=0o700)

def set_owner_read_write_only(pathname: str) -> None:
  os.chmod(pathname, stat.S_IRUSR | stat.S_IWUSR)

def run_cmd(
      args: Sequence[str],
      cwd: Optional[str]=None,
      env: Optional[Mapping[str, str]]=None,
      timeout: Optional[float]=None,
    ) -> Tuple[int, str, str]:
  """Runs a command to completion and captures its output

  Args:
      args (Sequence[str]): The command and its arguments
      cwd (Optional[str], optional): Working directory for the command. Defaults to None.
      env (Optional[Mapping[str, str]], optional): Environment for the command. Defaults to None.
      timeout (Optional[float], optional): Seconds to wait before killing the command. Defaults to None.

  Raises:
      subprocess.TimeoutExpired: The command did not complete within timeout seconds
      OSError: The command could not be launched

  Returns:
      Tuple[int, str, str]: The exit code, stdout text and stderr text
  """
  cmd: List[str] = list(args)
  logger.debug("Running %s (cwd=%s)", cmd, cwd)
  with subprocess.Popen(
        cmd,
        cwd=cwd,
        env=None if env is None else dict(env),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE
      ) as proc:
    try:
      (stdout_bytes, stderr_bytes) = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
      proc.kill()
      proc.communicate()
      raise
    exit_code = proc.returncode
  stdout_s = stdout_bytes.decode('utf-8', errors='replace')
  stderr_s = stderr_bytes.decode('utf-8', errors='replace')
  logger.debug("%s exited with code %d", cmd[0], exit_code)
  return exit_code, stdout_s, stderr_s
