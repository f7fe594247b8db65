# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Maintenance of per-identity Host blocks in the SSH client config file.

A block starts at a line beginning with "Host " and runs up to, but not
including, the next such line or the end of the file. The whole file is
read, edited and rewritten on every change, so concurrent gim invocations
against the same file can lose updates.
"""

from typing import List, Optional, Tuple

import os
import logging

from .constants import GIM_DEFAULT_GIT_HOST, GIM_DEFAULT_GIT_USER
from .util import make_private_dir, set_owner_read_write_only

logger = logging.getLogger(__name__)

_HOST_PREFIX = 'Host '

def format_host_block(
      host_alias: str,
      key_path: str,
      hostname: str=GIM_DEFAULT_GIT_HOST,
      user: str=GIM_DEFAULT_GIT_USER
    ) -> str:
  return (
      f"Host {host_alias}\n"
      f"  HostName {hostname}\n"
      f"  User {user}\n"
      f"  IdentityFile {key_path}\n"
      f"  IdentitiesOnly yes\n"
    )

def _is_block_start(line: str) -> bool:
  return line.startswith(_HOST_PREFIX)

def _header_alias(line: str) -> str:
  return line[len(_HOST_PREFIX):].rstrip('\r\n')

def excise_host_block(lines: List[str], host_alias: str) -> Tuple[List[str], Optional[List[str]]]:
  """Splits the block whose header is exactly "Host <host_alias>" out of a list of lines

  Returns:
      Tuple[List[str], Optional[List[str]]]: The remaining lines, and the removed
          block's lines (None if there was no such block)
  """
  start: Optional[int] = None
  for i, line in enumerate(lines):
    if _is_block_start(line) and _header_alias(line) == host_alias:
      start = i
      break
  if start is None:
    return lines, None
  end = start + 1
  while end < len(lines) and not _is_block_start(lines[end]):
    end += 1
  return lines[:start] + lines[end:], lines[start:end]

class SshConfigFile:
  _pathname: str

  def __init__(self, pathname: str):
    self._pathname = pathname

  @property
  def pathname(self) -> str:
    return self._pathname

  def _read_lines(self) -> List[str]:
    try:
      with open(self._pathname, encoding='utf-8', errors='surrogateescape') as f:
        return f.readlines()
    except FileNotFoundError:
      return []

  def _write_lines(self, lines: List[str]) -> None:
    make_private_dir(os.path.dirname(self._pathname))
    with open(self._pathname, 'w', encoding='utf-8', errors='surrogateescape') as f:
      f.writelines(lines)
    set_owner_read_write_only(self._pathname)

  def _excise_all(self, host_alias: str) -> Tuple[List[str], int]:
    """Reads the file and drops every block for host_alias; returns the rest and the number dropped"""
    lines = self._read_lines()
    count = 0
    while True:
      lines, block = excise_host_block(lines, host_alias)
      if block is None:
        return lines, count
      count += 1

  def find_host_block(self, host_alias: str) -> Optional[str]:
    _, block = excise_host_block(self._read_lines(), host_alias)
    return None if block is None else ''.join(block)

  def has_host_block(self, host_alias: str) -> bool:
    return not self.find_host_block(host_alias) is None

  def list_host_aliases(self, prefix: Optional[str]=None) -> List[str]:
    result: List[str] = []
    for line in self._read_lines():
      if _is_block_start(line):
        host_alias = _header_alias(line)
        if prefix is None or host_alias.startswith(prefix):
          result.append(host_alias)
    return result

  def upsert_host_block(
        self,
        host_alias: str,
        key_path: str,
        hostname: str=GIM_DEFAULT_GIT_HOST,
        user: str=GIM_DEFAULT_GIT_USER
      ) -> bool:
    """Replaces (or adds) the Host block for host_alias, moving it to the end of the file

    Returns:
        bool: True if an existing block was replaced
    """
    lines, num_removed = self._excise_all(host_alias)
    if len(lines) > 0:
      if not lines[-1].endswith('\n'):
        lines[-1] += '\n'
      if lines[-1].strip() != '':
        lines.append('\n')
    lines.append(format_host_block(host_alias, key_path, hostname=hostname, user=user))
    self._write_lines(lines)
    logger.debug("%s Host block %s in %s", "Replaced" if num_removed > 0 else "Added", host_alias, self._pathname)
    return num_removed > 0

  def remove_host_block(self, host_alias: str) -> bool:
    """Removes every Host block for host_alias; returns True if any was found"""
    lines, num_removed = self._excise_all(host_alias)
    if num_removed == 0:
      return False
    self._write_lines(lines)
    logger.debug("Removed Host block %s from %s", host_alias, self._pathname)
    return True
