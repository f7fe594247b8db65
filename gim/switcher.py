# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Routing a git working tree through an identity.

Switching sets the repository-local author and points every SSH shorthand
remote (git@<host>:<path>) at the identity's SSH host alias, so that ssh
picks the identity's key from the Host block gim maintains.
"""

from typing import Optional, List, Tuple, Sequence, Pattern

import os
import re
import logging

from .identity import Identity
from .store import IdentityStore
from .git import GitClient
from .exceptions import (
    GimError,
    GitCommandError,
    RecordParseError,
    UnsupportedUrlScheme,
    CloneFailed,
    PostCloneSwitchFailed,
  )
from .constants import GIM_DEFAULT_GIT_HOST, GIM_DEFAULT_GIT_USER

logger = logging.getLogger(__name__)

def rewrite_ssh_shorthand_url(url: str, host_alias: str, git_user: str=GIM_DEFAULT_GIT_USER) -> Optional[str]:
  """Returns url with its host replaced by host_alias, or None if url is not <git_user>@<host>:<path>"""
  m = re.match(r'^' + re.escape(git_user) + r'@([^:\s/]+):(.+)$', url)
  if m is None:
    return None
  return f"{git_user}@{host_alias}:{m.group(2)}"

class SwitchResult:
  identity: Identity
  repo_dir: str
  remotes_total: int
  remotes_updated: List[Tuple[str, str, str]]

  def __init__(self, identity: Identity, repo_dir: str, remotes_total: int, remotes_updated: List[Tuple[str, str, str]]):
    self.identity = identity
    self.repo_dir = repo_dir
    self.remotes_total = remotes_total
    self.remotes_updated = remotes_updated

  @property
  def num_updated(self) -> int:
    return len(self.remotes_updated)

  @property
  def has_remotes(self) -> bool:
    return self.remotes_total > 0

class ContextSwitcher:
  _store: IdentityStore
  _git: GitClient
  _git_host: str
  _git_user: str
  _clone_url_re: Pattern[str]

  def __init__(
        self,
        store: IdentityStore,
        git: Optional[GitClient]=None,
        git_host: str=GIM_DEFAULT_GIT_HOST,
        git_user: str=GIM_DEFAULT_GIT_USER
      ):
    self._store = store
    self._git = GitClient() if git is None else git
    self._git_host = git_host
    self._git_user = git_user
    self._clone_url_re = re.compile(
        r'^' + re.escape(git_user) + '@' + re.escape(git_host) + r':([^/\s]+)/([^/\s]+?)(\.git)?$'
      )

  def switch(self, alias: str, cwd: Optional[str]=None) -> SwitchResult:
    """Makes alias the author of the repository at cwd and routes its SSH remotes through it

    Raises:
        IdentityNotFound: No record exists for alias
        NotInsideRepository: cwd is not within a git working tree

    Returns:
        SwitchResult: The remotes that were rewritten, as (name, old URL, new URL)
    """
    identity = self._store.read(alias)
    repo_dir = self._git.require_work_tree(cwd=cwd)
    self._git.set_local_config_value('user.name', identity.name, cwd=repo_dir)
    self._git.set_local_config_value('user.email', identity.email, cwd=repo_dir)
    remotes = self._git.list_remotes(cwd=repo_dir)
    updated: List[Tuple[str, str, str]] = []
    for name, url in remotes:
      new_url = rewrite_ssh_shorthand_url(url, identity.host_alias, git_user=self._git_user)
      if new_url is None:
        logger.debug("Leaving non-SSH remote %s (%s) unchanged", name, url)
        continue
      if new_url == url:
        continue
      self._git.set_remote_url(name, new_url, cwd=repo_dir)
      updated.append((name, url, new_url))
    return SwitchResult(identity, repo_dir, len(remotes), updated)

  def parse_clone_url(self, source_url: str) -> Tuple[str, str, str]:
    """Splits git@github.com:<org>/<repo>[.git] into (org, repo, suffix)"""
    m = self._clone_url_re.match(source_url)
    if m is None:
      raise UnsupportedUrlScheme(source_url)
    return m.group(1), m.group(2), m.group(3) or ''

  def clone_with_identity(
        self,
        alias: str,
        source_url: str,
        destination: Optional[str]=None,
        extra_args: Optional[Sequence[str]]=None,
        cwd: Optional[str]=None
      ) -> str:
    """Clones a GitHub repository through an identity's host alias, then switches it

    Raises:
        IdentityNotFound: No record exists for alias
        UnsupportedUrlScheme: source_url is not git@github.com:<org>/<repo>[.git]
        CloneFailed: git clone failed
        PostCloneSwitchFailed: The clone succeeded but switching it failed; the clone is kept

    Returns:
        str: Absolute path of the new working tree
    """
    identity = self._store.read(alias)
    org, repo, suffix = self.parse_clone_url(source_url)
    if destination is None or destination == '':
      destination = repo
    if cwd is None:
      cwd = os.getcwd()
    dest_dir = os.path.abspath(os.path.join(cwd, os.path.expanduser(destination)))
    clone_url = f"{self._git_user}@{identity.host_alias}:{org}/{repo}{suffix}"
    logger.debug("Cloning %s into %s", clone_url, dest_dir)
    try:
      self._git.clone(clone_url, dest_dir, extra_args=extra_args, cwd=cwd)
    except GitCommandError as ex:
      raise CloneFailed(f"Clone of {clone_url} failed: {ex}") from ex
    try:
      self.switch(alias, cwd=dest_dir)
    except GimError as ex:
      raise PostCloneSwitchFailed(dest_dir, str(ex)) from ex
    return dest_dir

  def current_identity(self, cwd: Optional[str]=None) -> Optional[str]:
    """Reverse-looks-up the identity whose name and email match the repository's author

    Returns None ("unmanaged") outside a repository or when nothing matches. When
    several identities share the same name and email, the first alias wins.
    """
    repo_dir = self._git.get_root_dir(cwd=cwd)
    if repo_dir is None:
      return None
    name = self._git.get_config_value('user.name', cwd=repo_dir)
    email = self._git.get_config_value('user.email', cwd=repo_dir)
    if name is None or email is None:
      return None
    for alias in self._store.list():
      try:
        identity = self._store.read(alias)
      except RecordParseError as ex:
        logger.warning("Skipping identity %s: %s", alias, ex)
        continue
      if identity.matches_author(name, email):
        return alias
    return None

  def list_remotes(self, cwd: Optional[str]=None) -> List[Tuple[str, str]]:
    repo_dir = self._git.require_work_tree(cwd=cwd)
    return self._git.list_remotes(cwd=repo_dir)
