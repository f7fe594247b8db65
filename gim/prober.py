# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Live SSH authentication probes against an identity's host alias"""

from typing import Optional

import logging
import subprocess

from .constants import GIM_DEFAULT_GIT_USER, GIM_DEFAULT_SSH_CONNECT_TIMEOUT
from .util import run_cmd

logger = logging.getLogger(__name__)

PROBE_OK = 'ok'
PROBE_AUTH_FAILED = 'auth_failed'
PROBE_TIMEOUT = 'timeout'

# GitHub prints this on a successful "ssh -T", then exits with status 1
_SUCCESS_MARKER = 'successfully authenticated'

class ProbeResult:
  status: str
  message: str

  def __init__(self, status: str, message: str=''):
    self.status = status
    self.message = message

  @property
  def ok(self) -> bool:
    return self.status == PROBE_OK

  def __repr__(self) -> str:
    return f"ProbeResult(status={self.status!r}, message={self.message!r})"

class SshProber:
  _ssh_prog: str
  _user: str

  def __init__(self, ssh_prog: str='ssh', user: str=GIM_DEFAULT_GIT_USER):
    self._ssh_prog = ssh_prog
    self._user = user

  def probe(self, host_alias: str, timeout: Optional[float]=None) -> ProbeResult:
    """Attempts non-interactive SSH authentication through host_alias

    Never raises for connection problems; a timeout or an authentication
    failure is reported in the result.
    """
    if timeout is None:
      timeout = GIM_DEFAULT_SSH_CONNECT_TIMEOUT
    cmd = [
        self._ssh_prog,
        '-T',
        '-o', 'BatchMode=yes',
        '-o', f"ConnectTimeout={max(1, int(timeout))}",
        '-o', 'StrictHostKeyChecking=accept-new',
        f"{self._user}@{host_alias}",
      ]
    try:
      # Bound the whole exchange, not just the TCP connect
      _, stdout_s, stderr_s = run_cmd(cmd, timeout=timeout * 2 + 1)
    except subprocess.TimeoutExpired:
      logger.debug("SSH probe of %s timed out", host_alias)
      return ProbeResult(PROBE_TIMEOUT, f"Timed out connecting to {host_alias}")
    except OSError as ex:
      return ProbeResult(PROBE_AUTH_FAILED, f"Unable to run {self._ssh_prog}: {ex}")
    output = (stdout_s + stderr_s).strip()
    if _SUCCESS_MARKER in output:
      return ProbeResult(PROBE_OK, output)
    lowered = output.lower()
    if 'timed out' in lowered or 'timeout' in lowered:
      return ProbeResult(PROBE_TIMEOUT, output)
    return ProbeResult(PROBE_AUTH_FAILED, output)
