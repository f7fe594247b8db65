# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import pytest

from gim.identity import Identity, is_valid_alias, is_valid_email, make_host_alias
from gim.exceptions import InvalidAlias, InvalidEmail

@pytest.mark.parametrize('alias', [ 'work', 'Work_2', 'my-alias', '_', '123' ])
def test_valid_aliases(alias):
  assert is_valid_alias(alias)

@pytest.mark.parametrize('alias', [ '', 'has space', 'dot.ted', 'sl/ash', 'ümlaut', 'semi;colon' ])
def test_invalid_aliases(alias):
  assert not is_valid_alias(alias)

@pytest.mark.parametrize('email', [ 'jane@company.com', 'a.b+c@sub.example.org' ])
def test_valid_emails(email):
  assert is_valid_email(email)

@pytest.mark.parametrize('email', [ '', 'jane', 'jane@company', '@company.com', 'jane@.com', 'jane@company.', 'a b@c.com' ])
def test_invalid_emails(email):
  assert not is_valid_email(email)

def test_host_alias_is_derived_from_alias():
  identity = Identity('work', 'Jane Doe', 'jane@company.com')
  assert identity.host_alias == 'github-work'
  assert make_host_alias('work') == 'github-work'
  assert identity.to_record() == dict(name='Jane Doe', email='jane@company.com', host='github-work')

def test_identity_rejects_bad_input():
  with pytest.raises(InvalidAlias):
    Identity('bad alias', 'Jane Doe', 'jane@company.com')
  with pytest.raises(InvalidEmail):
    Identity('work', 'Jane Doe', 'not-an-email')

def test_matches_author_requires_both_fields():
  identity = Identity('work', 'Jane Doe', 'jane@company.com')
  assert identity.matches_author('Jane Doe', 'jane@company.com')
  assert not identity.matches_author('Jane Doe', 'jane@home.com')
  assert not identity.matches_author('J. Doe', 'jane@company.com')
