# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import os
import stat

from gim.ssh_config import SshConfigFile, format_host_block, excise_host_block

_existing = (
    "Host *\n"
    "  ServerAliveInterval 60\n"
    "\n"
    "Host github-work\n"
    "  HostName github.com\n"
    "  User git\n"
    "  IdentityFile /old/key\n"
    "  IdentitiesOnly yes\n"
    "\n"
    "Host example\n"
    "  HostName example.com\n"
  )

def _write(ssh_config, text):
  os.makedirs(os.path.dirname(ssh_config.pathname), exist_ok=True)
  with open(ssh_config.pathname, 'w', encoding='utf-8') as f:
    f.write(text)

def _read(ssh_config):
  with open(ssh_config.pathname, encoding='utf-8') as f:
    return f.read()

def test_format_host_block():
  assert format_host_block('github-work', '/k') == (
      "Host github-work\n  HostName github.com\n  User git\n  IdentityFile /k\n  IdentitiesOnly yes\n")

def test_upsert_creates_file_with_private_mode(ssh_config):
  assert not ssh_config.upsert_host_block('github-work', '/keys/id_work')
  text = _read(ssh_config)
  assert text == format_host_block('github-work', '/keys/id_work')
  assert stat.S_IMODE(os.stat(ssh_config.pathname).st_mode) == 0o600
  assert ssh_config.has_host_block('github-work')

def test_upsert_is_idempotent_and_keeps_latest_key(ssh_config):
  _write(ssh_config, _existing)
  for i in range(4):
    ssh_config.upsert_host_block('github-work', f'/keys/id_{i}')
  text = _read(ssh_config)
  assert text.count("Host github-work\n") == 1
  assert "IdentityFile /keys/id_3\n" in text
  assert "/old/key" not in text
  assert ssh_config.list_host_aliases() == [ '*', 'example', 'github-work' ]
  assert "Host example\n  HostName example.com\n" in text

def test_remove_excises_only_the_matching_block(ssh_config):
  _write(ssh_config, _existing)
  assert ssh_config.remove_host_block('github-work')
  text = _read(ssh_config)
  assert text == "Host *\n  ServerAliveInterval 60\n\nHost example\n  HostName example.com\n"
  assert not ssh_config.remove_host_block('github-work')
  assert _read(ssh_config) == text

def test_header_must_match_exactly(ssh_config):
  _write(ssh_config, "Host github-work-2\n  HostName github.com\nHost github-workx\n  User git\n")
  assert ssh_config.find_host_block('github-work') is None
  assert not ssh_config.remove_host_block('github-work')

def test_missing_file(ssh_config):
  assert ssh_config.list_host_aliases() == []
  assert not ssh_config.remove_host_block('github-work')
  assert not os.path.exists(ssh_config.pathname)

def test_block_runs_to_end_of_file():
  lines = [ "Host a\n", "  User x\n", "Host b\n", "  User y\n", "\n", "# trailing comment\n" ]
  remaining, block = excise_host_block(lines, 'b')
  assert remaining == [ "Host a\n", "  User x\n" ]
  assert block == [ "Host b\n", "  User y\n", "\n", "# trailing comment\n" ]

def test_list_host_aliases_with_prefix(ssh_config):
  ssh_config.upsert_host_block('github-a', '/k/a')
  ssh_config.upsert_host_block('github-b', '/k/b')
  _write(ssh_config, _read(ssh_config) + "Host other\n  User z\n")
  assert ssh_config.list_host_aliases(prefix='github-') == [ 'github-a', 'github-b' ]

def test_duplicate_blocks_are_all_replaced(ssh_config):
  _write(ssh_config, "Host github-work\n  IdentityFile /a\n\nHost github-work\n  IdentityFile /b\n")
  assert ssh_config.upsert_host_block('github-work', '/new')
  text = _read(ssh_config)
  assert text.count("Host github-work\n") == 1
  assert "IdentityFile /new\n" in text
  assert "/a\n" not in text and "/b\n" not in text

def test_duplicate_blocks_are_all_removed(ssh_config):
  _write(ssh_config, "Host github-work\n  IdentityFile /a\nHost other\n  User z\nHost github-work\n  IdentityFile /b\n")
  assert ssh_config.remove_host_block('github-work')
  assert _read(ssh_config) == "Host other\n  User z\n"

def test_non_utf8_bytes_survive_rewrite(ssh_config):
  os.makedirs(os.path.dirname(ssh_config.pathname), exist_ok=True)
  with open(ssh_config.pathname, 'wb') as f:
    f.write(b"# caf\xe9\nHost other\n  User z\n")
  assert ssh_config.list_host_aliases() == [ 'other' ]
  ssh_config.upsert_host_block('github-work', '/k')
  assert ssh_config.has_host_block('github-work')
  assert ssh_config.remove_host_block('github-work')
  with open(ssh_config.pathname, 'rb') as f:
    assert f.read() == b"# caf\xe9\nHost other\n  User z\n\n"
