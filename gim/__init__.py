# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package gim manages multiple git author / SSH key identities on one machine
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict, JsonableList

from .exceptions import (
    GimError,
    ConfigError,
    InvalidAlias,
    InvalidEmail,
    AlreadyExists,
    IdentityNotFound,
    RecordParseError,
    KeyExists,
    KeyGenerationFailed,
    GitCommandError,
    NotInsideRepository,
    UnsupportedUrlScheme,
    CloneFailed,
    PostCloneSwitchFailed,
  )

from .config import GimConfig
from .identity import Identity, make_host_alias
from .store import IdentityStore
from .keys import KeyProvisioner
from .ssh_config import SshConfigFile
from .git import GitClient
from .prober import SshProber, ProbeResult
from .manager import IdentityManager, RemoveResult
from .switcher import ContextSwitcher, SwitchResult
from .auditor import HealthAuditor, AuditReport, IdentityHealth
