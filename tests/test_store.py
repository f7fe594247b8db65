# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import os
import stat
import pytest

from gim.store import IdentityStore
from gim.identity import Identity
from gim.exceptions import AlreadyExists, IdentityNotFound, InvalidAlias, InvalidEmail, RecordParseError

def test_create_then_read_returns_same_triple(store):
  created = store.create('work', 'Jane Doe', 'jane@company.com')
  identity = store.read('work')
  assert identity == created
  assert (identity.name, identity.email, identity.host_alias) == ('Jane Doe', 'jane@company.com', 'github-work')

def test_record_is_private(store):
  store.create('work', 'Jane Doe', 'jane@company.com')
  mode = stat.S_IMODE(os.stat(store.record_path('work')).st_mode)
  assert mode == 0o600

def test_create_twice_fails_and_keeps_original(store):
  store.create('work', 'Jane Doe', 'jane@company.com')
  with pytest.raises(AlreadyExists):
    store.create('work', 'Someone Else', 'else@example.com')
  assert store.read('work') == Identity('work', 'Jane Doe', 'jane@company.com')

def test_validation_happens_before_writing(store):
  with pytest.raises(InvalidAlias):
    store.create('no good', 'Jane Doe', 'jane@company.com')
  with pytest.raises(InvalidEmail):
    store.create('work', 'Jane Doe', 'jane-at-company')
  assert store.list() == []
  assert not os.path.exists(store.identities_dir)

def test_read_missing_raises_not_found(store):
  with pytest.raises(IdentityNotFound):
    store.read('nobody')
  assert store.find('nobody') is None

def test_list_and_delete(store):
  assert store.list() == []
  store.create('work', 'Jane Doe', 'jane@company.com')
  store.create('home', 'Jane Doe', 'jane@home.org')
  assert sorted(store.list()) == [ 'home', 'work' ]
  assert [ x.alias for x in store.list_identities() ] == store.list()
  assert store.delete('work')
  assert not store.delete('work')
  assert store.list() == [ 'home' ]
  with pytest.raises(IdentityNotFound):
    store.read('work')

def test_every_call_reads_the_disk(gim_dirs):
  writer = IdentityStore(gim_dirs['identities_dir'])
  reader = IdentityStore(gim_dirs['identities_dir'])
  writer.create('work', 'Jane Doe', 'jane@company.com')
  assert reader.list() == [ 'work' ]
  writer.delete('work')
  assert reader.list() == []

def _write_record(store, alias, text):
  os.makedirs(store.identities_dir, exist_ok=True)
  with open(store.record_path(alias), 'w', encoding='utf-8') as f:
    f.write(text)

@pytest.mark.parametrize('text', [
    "just a string\n",
    "name: Jane Doe\nemail: jane@company.com\n",
    "name: Jane Doe\nemail: jane@company.com\nhost: github-work\nextra: 1\n",
    "name: 42\nemail: jane@company.com\nhost: github-work\n",
    "name: Jane Doe\nemail: not-an-email\nhost: github-work\n",
    "name: Jane Doe\nemail: jane@company.com\nhost: github-other\n",
    "name: [unclosed\n",
  ])
def test_malformed_records_are_rejected(store, text):
  _write_record(store, 'work', text)
  with pytest.raises(RecordParseError):
    store.read('work')

def test_list_ignores_unrelated_files(store):
  store.create('work', 'Jane Doe', 'jane@company.com')
  _write_record(store, 'not valid', "name: x\n")
  with open(os.path.join(store.identities_dir, 'README'), 'w', encoding='utf-8') as f:
    f.write("hello\n")
  assert store.list() == [ 'work' ]

def test_non_utf8_record_is_malformed(store):
  store.create('work', 'Jane Doe', 'jane@company.com')
  with open(store.record_path('work'), 'wb') as f:
    f.write(b"name: \xff\xfe\nemail: jane@company.com\nhost: github-work\n")
  with pytest.raises(RecordParseError):
    store.read('work')
