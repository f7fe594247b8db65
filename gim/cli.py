# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""gim CLI"""

from typing import Optional, Sequence, List, TextIO, Mapping

import os
import sys
import json
import logging
import argparse
import argcomplete # type: ignore[import]
import colorama # type: ignore[import]
from colorama import Fore, Style

from .config import GimConfig
from .exceptions import GimError
from .store import IdentityStore
from .keys import KeyProvisioner, CommandRunner
from .ssh_config import SshConfigFile
from .git import GitClient
from .prober import SshProber
from .manager import IdentityManager
from .switcher import ContextSwitcher
from .auditor import HealthAuditor, IdentityHealth
from .internal_types import Jsonable
from .version import __version__ as pkg_version

GITHUB_SSH_KEYS_URL = 'https://github.com/settings/keys'

def is_colorizable(stream: TextIO) -> bool:
  is_a_tty = hasattr(stream, 'isatty') and stream.isatty()
  return is_a_tty


class CmdExitError(RuntimeError):
  exit_code: int

  def __init__(self, exit_code: int, msg: Optional[str]=None):
    if msg is None:
      msg = f"Command exited with return code {exit_code}"
    super().__init__(msg)
    self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
  pass

class NoExitArgumentParser(argparse.ArgumentParser):
  def exit(self, status=0, message=None):
    if message:
      self._print_message(message, sys.stderr)
    raise ArgparseExitError(status, message)


class CommandLineInterface:
  _argv: Optional[Sequence[str]]
  _parser: argparse.ArgumentParser
  _args: argparse.Namespace
  _cwd: str
  _environ: Optional[Mapping[str, str]]

  _cfg: Optional[GimConfig] = None
  _store: Optional[IdentityStore] = None
  _keys: Optional[KeyProvisioner] = None
  _ssh_config: Optional[SshConfigFile] = None
  _git: Optional[GitClient] = None
  _prober: Optional[SshProber] = None
  _key_runner: Optional[CommandRunner] = None

  _compact: bool = False
  _config_file: Optional[str] = None

  _colorize_stdout: bool = False
  _colorize_stderr: bool = False

  def __init__(
        self,
        argv: Optional[Sequence[str]]=None,
        git: Optional[GitClient]=None,
        prober: Optional[SshProber]=None,
        key_runner: Optional[CommandRunner]=None,
        environ: Optional[Mapping[str, str]]=None,
      ):
    self._argv = argv
    self._git = git
    self._prober = prober
    self._key_runner = key_runner
    self._environ = environ

  def ocolor(self, codes: str) -> str:
    return codes if self._colorize_stdout else ""

  def ecolor(self, codes: str) -> str:
    return codes if self._colorize_stderr else ""

  @property
  def cwd(self) -> str:
    return self._cwd

  def abspath(self, path: str) -> str:
    return os.path.abspath(os.path.join(self.cwd, os.path.expanduser(path)))

  def pretty_print(self, value: Jsonable, compact: Optional[bool]=None):
    if compact is None:
      compact = self._compact
    if compact:
      json.dump(value, sys.stdout, separators=(',', ':'), sort_keys=True)
    else:
      json.dump(value, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write('\n')

  def ok_text(self, text: str) -> str:
    return f"{self.ocolor(Fore.GREEN)}{text}{self.ocolor(Style.RESET_ALL)}"

  def bad_text(self, text: str) -> str:
    return f"{self.ocolor(Fore.RED)}{text}{self.ocolor(Style.RESET_ALL)}"

  def warn(self, text: str) -> None:
    print(f"{self.ecolor(Fore.YELLOW)}gim: warning: {text}{self.ecolor(Style.RESET_ALL)}", file=sys.stderr)

  def confirm(self, prompt: str) -> bool:
    if self._args.yes:
      return True
    try:
      answer = input(f"{prompt} [y/N] ")
    except EOFError:
      return False
    return answer.strip().lower() in ('y', 'yes')

  # ======================= Component factories

  def get_config(self) -> GimConfig:
    if self._cfg is None:
      self._cfg = GimConfig(config_path=self._config_file, environ=self._environ)
    return self._cfg

  def get_store(self) -> IdentityStore:
    if self._store is None:
      cfg = self.get_config()
      self._store = IdentityStore(cfg.identities_dir, host_alias_prefix=cfg.host_alias_prefix)
    return self._store

  def get_keys(self) -> KeyProvisioner:
    if self._keys is None:
      cfg = self.get_config()
      self._keys = KeyProvisioner(cfg.ssh_dir, key_type=cfg.key_type, runner=self._key_runner)
    return self._keys

  def get_ssh_config(self) -> SshConfigFile:
    if self._ssh_config is None:
      self._ssh_config = SshConfigFile(self.get_config().ssh_config_file)
    return self._ssh_config

  def get_git(self) -> GitClient:
    if self._git is None:
      self._git = GitClient()
    return self._git

  def get_prober(self) -> SshProber:
    if self._prober is None:
      self._prober = SshProber(user=self.get_config().git_user)
    return self._prober

  def get_manager(self) -> IdentityManager:
    cfg = self.get_config()
    return IdentityManager(
        self.get_store(),
        self.get_keys(),
        self.get_ssh_config(),
        git_host=cfg.git_host,
        git_user=cfg.git_user,
        host_alias_prefix=cfg.host_alias_prefix,
      )

  def get_switcher(self) -> ContextSwitcher:
    cfg = self.get_config()
    return ContextSwitcher(self.get_store(), git=self.get_git(), git_host=cfg.git_host, git_user=cfg.git_user)

  def get_auditor(self) -> HealthAuditor:
    cfg = self.get_config()
    return HealthAuditor(
        self.get_store(),
        self.get_keys(),
        self.get_ssh_config(),
        prober=self.get_prober(),
        timeout=cfg.ssh_connect_timeout,
        max_workers=cfg.max_workers,
      )

  # ======================= Commands

  def cmd_bare(self) -> int:
    self._parser.print_usage(sys.stderr)
    print("A command is required", file=sys.stderr)
    return 1

  def cmd_version(self) -> int:
    self.pretty_print(pkg_version)
    return 0

  def cmd_add(self) -> int:
    args = self._args
    alias: str = args.alias
    name: str = args.name
    email: str = args.email
    manager = self.get_manager()

    def confirm_overwrite(key_path: str) -> bool:
      return self.confirm(f"An SSH key already exists at {key_path}. Overwrite it?")

    identity = manager.add(alias, name, email, confirm_overwrite=confirm_overwrite)
    public_key = manager.keys.read_public_key(alias)
    print(self.ok_text(f"Identity '{identity.alias}' created ({identity.name} <{identity.email}>)"))
    print(f"SSH host alias: {identity.host_alias}")
    print(f"Private key:    {manager.keys.private_key_path(alias)}")
    print()
    print("Public key:")
    print(public_key if not public_key is None else self.bad_text("(public key file not found)"))
    print()
    print(f"Add this public key to your GitHub account: {GITHUB_SSH_KEYS_URL}")
    return 0

  def cmd_switch(self) -> int:
    alias: str = self._args.alias
    result = self.get_switcher().switch(alias, cwd=self.cwd)
    identity = result.identity
    print(self.ok_text(f"Switched to identity '{identity.alias}' ({identity.name} <{identity.email}>)"))
    if not result.has_remotes:
      print("No remotes configured")
    elif result.num_updated == 0:
      print(f"No SSH remotes updated ({result.remotes_total} remote(s) left unchanged)")
    else:
      for name, _, new_url in result.remotes_updated:
        print(f"  {name}: {new_url}")
      print(f"Updated {result.num_updated} of {result.remotes_total} remote(s)")
    return 0

  def _status_text(self, ok: bool, bad_label: str='MISSING') -> str:
    return self.ok_text('OK') if ok else self.bad_text(bad_label)

  def print_identity_health(self, health: IdentityHealth) -> None:
    identity = health.identity
    if identity is None:
      print(f"{health.alias}")
    else:
      print(f"{health.alias} ({identity.name} <{identity.email}>) via {identity.host_alias}")
    if not health.error is None:
      print(f"  Error:      {self.bad_text(health.error)}")
    if identity is None:
      return
    print(f"  Key:        {self._status_text(health.key_ok)}")
    print(f"  Config:     {self._status_text(health.config_ok)}")
    connection = health.connection
    if connection is None or connection.ok:
      print(f"  Connection: {self._status_text(health.connection_ok)}")
    else:
      print(f"  Connection: {self.bad_text('FAILED')} ({connection.status})")
    if not health.public_key is None:
      print(f"  Public key: {health.public_key}")
    elif self._args.keys and not health.key_ok:
      print(f"  Public key: {self.bad_text('(not found)')}")

  def cmd_list(self) -> int:
    args = self._args
    report = self.get_auditor().audit(include_public_keys=args.keys)
    if args.json:
      self.pretty_print(report.as_jsonable())
      return 0 if report.healthy else 1
    if len(report.identities) == 0:
      print("No identities configured. Use 'gim add <alias> <name> <email>' to create one.")
      return 0
    for health in report.identities:
      self.print_identity_health(health)
    print()
    summary = f"{report.num_healthy} of {len(report.identities)} identities healthy"
    if report.has_issues:
      print(self.bad_text(f"{summary}; issues found"))
      return 1
    print(self.ok_text(f"{summary}; all good"))
    return 0

  def cmd_current(self) -> int:
    switcher = self.get_switcher()
    if not self.get_git().is_inside_work_tree(cwd=self.cwd):
      print("Not inside a git repository")
      print("Current identity: unmanaged")
      return 0
    alias = switcher.current_identity(cwd=self.cwd)
    if alias is None:
      print("Current identity: unmanaged")
    else:
      identity = self.get_store().read(alias)
      print(f"Current identity: {self.ok_text(alias)} ({identity.name} <{identity.email}>)")
    remotes = switcher.list_remotes(cwd=self.cwd)
    if len(remotes) == 0:
      print("No remotes configured")
    else:
      print("Remotes:")
      for name, url in remotes:
        print(f"  {name}\t{url}")
    return 0

  def cmd_remove(self) -> int:
    args = self._args
    alias: Optional[str] = args.alias
    remove_all: bool = args.all
    if remove_all == (not alias is None):
      raise GimError("Specify either an identity alias or --all")
    manager = self.get_manager()
    if remove_all:
      aliases = manager.store.list()
      if len(aliases) == 0 and len(manager.ssh_config.list_host_aliases(prefix=self.get_config().host_alias_prefix)) == 0:
        print("No identities to remove")
        return 0
      if not self.confirm(f"Remove all identities ({', '.join(aliases)}), their keys and SSH config entries?"):
        print("Aborted")
        return 1
      results = manager.remove_all()
    else:
      assert not alias is None
      results = [ manager.remove(alias) ]
    for result in results:
      if not result.record_removed:
        self.warn(f"Identity record for '{result.alias}' was already missing")
      print(self.ok_text(f"Removed identity '{result.alias}'"))
    return 0

  def cmd_clone(self) -> int:
    args = self._args
    alias: str = args.alias
    source_url: str = args.source_url
    rest: List[str] = list(args.clone_args)
    destination: Optional[str] = None
    if len(rest) > 0 and not rest[0].startswith('-'):
      destination = rest.pop(0)
    dest_dir = self.get_switcher().clone_with_identity(
        alias, source_url, destination=destination, extra_args=rest, cwd=self.cwd)
    print(self.ok_text(f"Cloned into '{dest_dir}' using identity '{alias}'"))
    return 0

  def run(self) -> int:
    """Run the gim command-line tool with provided arguments

    Args:
        argv (Optional[Sequence[str]], optional):
            A list of commandline arguments (NOT including the program as argv[0]!),
            or None to use sys.argv[1:]. Defaults to None.

    Returns:
        int: The exit code that would be returned if this were run as a standalone command.
    """
    parser = NoExitArgumentParser(prog='gim', description="Manage multiple git/SSH identities.")

    # ======================= Main command

    self._parser = parser
    parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                        help='Display detailed exception information')
    parser.add_argument('-M', '--monochrome', action='store_true', default=False,
                        help='Output to stdout/stderr in monochrome. Default is to colorize if stream is a compatible terminal')
    parser.add_argument('-v', '--verbose', action='store_true', default=False,
                        help='Log debug information, including every command run, to stderr')
    parser.add_argument('-c', '--compact', action='store_true', default=False,
                        help='Compact instead of pretty-printed JSON output')
    parser.add_argument('-C', '--cwd', default='.',
                        help="Change the effective working directory")
    parser.add_argument('--config',
                        help="Specify the location of the config file. Default is $GIM_CONFIG or ~/.config/gim/config.yaml")
    parser.set_defaults(func=self.cmd_bare, yes=False)

    subparsers = parser.add_subparsers(
                        title='Commands',
                        description='Valid commands',
                        help='Additional help available with "gim <command-name> -h"')

    # ======================= version

    parser_version = subparsers.add_parser('version',
                            description='''Display version information. JSON-quoted string.''')
    parser_version.set_defaults(func=self.cmd_version)

    # ======================= add

    parser_add = subparsers.add_parser('add',
                            description='''Create an identity: an SSH keypair, an identity record and an SSH config Host entry.''')
    parser_add.add_argument('-y', '--yes', action='store_true', default=False,
                        help='Overwrite an existing SSH key without asking')
    parser_add.add_argument('alias',
                        help='The identity alias (letters, digits, "-" and "_")')
    parser_add.add_argument('name',
                        help='The git user.name for the identity')
    parser_add.add_argument('email',
                        help='The git user.email for the identity')
    parser_add.set_defaults(func=self.cmd_add)

    # ======================= switch

    parser_switch = subparsers.add_parser('switch',
                            description='''Use an identity in the current git repository, rewriting SSH remotes to its host alias.''')
    parser_switch.add_argument('alias',
                        help='The identity alias')
    parser_switch.set_defaults(func=self.cmd_switch)

    # ======================= list

    parser_list = subparsers.add_parser('list',
                            description='''Check the key, SSH config and GitHub connection of every identity.''')
    parser_list.add_argument('--keys', action='store_true', default=False,
                        help='Also display each identity\'s public key')
    parser_list.add_argument('--json', action='store_true', default=False,
                        help='Output the report as JSON')
    parser_list.set_defaults(func=self.cmd_list)

    # ======================= current

    parser_current = subparsers.add_parser('current',
                            description='''Display the identity used by the current git repository, and its remotes.''')
    parser_current.set_defaults(func=self.cmd_current)

    # ======================= remove

    parser_remove = subparsers.add_parser('remove',
                            description='''Remove an identity's record, SSH keys and SSH config Host entry.''')
    parser_remove.add_argument('--all', action='store_true', default=False,
                        help='Remove all identities')
    parser_remove.add_argument('-y', '--yes', action='store_true', default=False,
                        help='Do not ask for confirmation with --all')
    parser_remove.add_argument('alias', nargs='?', default=None,
                        help='The identity alias')
    parser_remove.set_defaults(func=self.cmd_remove)

    # ======================= clone

    parser_clone = subparsers.add_parser('clone',
                            description='''Clone a GitHub repository using an identity.''')
    parser_clone.add_argument('alias',
                        help='The identity alias')
    parser_clone.add_argument('source_url',
                        help='The repository URL, git@github.com:<org>/<repo>[.git]')
    parser_clone.add_argument('clone_args', nargs=argparse.REMAINDER,
                        help='Optional destination directory, followed by options passed to "git clone"')
    parser_clone.set_defaults(func=self.cmd_clone)

    # =========================================================

    argcomplete.autocomplete(parser)
    try:
      args = parser.parse_args(self._argv)
    except ArgparseExitError as ex:
      return ex.exit_code
    traceback: bool = args.traceback
    try:
      self._args = args
      self._compact = args.compact
      logging.basicConfig(
          level=logging.DEBUG if args.verbose else logging.WARNING,
          stream=sys.stderr,
          format='%(name)s: %(levelname)s: %(message)s',
        )
      monochrome: bool = args.monochrome
      if not monochrome:
        self._colorize_stdout = is_colorizable(sys.stdout)
        self._colorize_stderr = is_colorizable(sys.stderr)
        if self._colorize_stdout or self._colorize_stderr:
          colorama.init(wrap=False)
          if self._colorize_stdout:
            new_stream = colorama.AnsiToWin32(sys.stdout)
            if new_stream.should_wrap():
              sys.stdout = new_stream
          if self._colorize_stderr:
            new_stream = colorama.AnsiToWin32(sys.stderr)
            if new_stream.should_wrap():
              sys.stderr = new_stream
      self._cwd = os.path.abspath(os.path.expanduser(args.cwd))
      config_file: Optional[str] = args.config
      if not config_file is None:
        self._config_file = self.abspath(config_file)
      rc = args.func()
    except Exception as ex:
      if isinstance(ex, CmdExitError):
        rc = ex.exit_code
      else:
        rc = 1
      if rc != 0:
        if traceback:
          raise

        print(f"{self.ecolor(Fore.RED)}gim: error: {ex}{self.ecolor(Style.RESET_ALL)}", file=sys.stderr)
    return rc

  @property
  def args(self) -> argparse.Namespace:
    return self._args

def run(argv: Optional[Sequence[str]]=None) -> int:
  try:
    rc = CommandLineInterface(argv).run()
  except CmdExitError as ex:
    rc = ex.exit_code
  return rc
