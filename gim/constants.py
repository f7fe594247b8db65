# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by gim"""

GIM_DEFAULT_CONFIG_DIR = '~/.config/gim'
GIM_CONFIG_FILENAME = 'config.yaml'
GIM_IDENTITIES_DIRNAME = 'identities'
GIM_RECORD_EXTENSION = '.yaml'

GIM_DEFAULT_SSH_DIR = '~/.ssh'
GIM_SSH_CONFIG_FILENAME = 'config'
GIM_DEFAULT_KEY_TYPE = 'ed25519'
GIM_DEFAULT_SSH_CONNECT_TIMEOUT = 5
GIM_DEFAULT_GIT_HOST = 'github.com'
GIM_DEFAULT_GIT_USER = 'git'
GIM_MAX_AUDIT_WORKERS = 16
