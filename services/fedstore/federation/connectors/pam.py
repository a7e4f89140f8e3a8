"""
PAM authenticator.

Validates passwords through Linux PAM (libpam loaded with ctypes). The
conversation callback answers every hidden prompt with the password and
every visible prompt with the username; informational messages are ignored.
A successful pam_authenticate is followed by pam_acct_mgmt so expired or
locked accounts are rejected too.

libpam calls block, so each attempt runs in a worker thread.
"""

import asyncio
import ctypes
import ctypes.util
import functools
from ctypes import (
    CFUNCTYPE,
    POINTER,
    Structure,
    byref,
    c_char_p,
    c_int,
    c_size_t,
    c_void_p,
    cast,
    sizeof,
)
from enum import IntEnum
from typing import Any

from fedstore.config import AuthenticatorConfig
from fedstore.federation.authenticator import Authenticator
from fedstore.federation.exceptions import AuthenticatorUnavailableError
from fedstore.logging_config import get_logger

logger = get_logger(__name__)


class PAMReturnCode(IntEnum):
    """PAM return codes."""

    SUCCESS = 0
    OPEN_ERR = 1
    SYMBOL_ERR = 2
    SERVICE_ERR = 3
    SYSTEM_ERR = 4
    BUF_ERR = 5
    PERM_DENIED = 6
    AUTH_ERR = 7
    CRED_INSUFFICIENT = 8
    AUTHINFO_UNAVAIL = 9
    USER_UNKNOWN = 10
    MAXTRIES = 11
    NEW_AUTHTOK_REQD = 12
    ACCT_EXPIRED = 13
    SESSION_ERR = 14
    CRED_UNAVAIL = 15
    CRED_EXPIRED = 16
    CRED_ERR = 17
    NO_MODULE_DATA = 18
    CONV_ERR = 19
    AUTHTOK_ERR = 20
    AUTHTOK_RECOVERY_ERR = 21
    AUTHTOK_LOCK_BUSY = 22
    AUTHTOK_DISABLE_AGING = 23
    TRY_AGAIN = 24
    IGNORE = 25
    ABORT = 26
    AUTHTOK_EXPIRED = 27


class PAMMessageStyle(IntEnum):
    """PAM conversation message styles."""

    PROMPT_ECHO_OFF = 1
    PROMPT_ECHO_ON = 2
    ERROR_MSG = 3
    TEXT_INFO = 4


# Codes that are a definite "no" from PAM, as opposed to PAM being unusable
REJECTION_CODES = frozenset(
    {
        PAMReturnCode.PERM_DENIED,
        PAMReturnCode.AUTH_ERR,
        PAMReturnCode.CRED_INSUFFICIENT,
        PAMReturnCode.USER_UNKNOWN,
        PAMReturnCode.MAXTRIES,
        PAMReturnCode.NEW_AUTHTOK_REQD,
        PAMReturnCode.ACCT_EXPIRED,
        PAMReturnCode.CRED_EXPIRED,
        PAMReturnCode.AUTHTOK_EXPIRED,
    }
)


class _PamHandle(Structure):
    _fields_ = [("handle", c_void_p)]


class _PamMessage(Structure):
    _fields_ = [("msg_style", c_int), ("msg", c_char_p)]


class _PamResponse(Structure):
    _fields_ = [("resp", c_void_p), ("resp_retcode", c_int)]


_ConvFunc = CFUNCTYPE(
    c_int,
    c_int,
    POINTER(POINTER(_PamMessage)),
    POINTER(POINTER(_PamResponse)),
    c_void_p,
)


class _PamConv(Structure):
    _fields_ = [("conv", _ConvFunc), ("appdata_ptr", c_void_p)]


@functools.cache
def _load_libpam() -> tuple[Any, Any] | None:
    """Load libpam and libc, or None when PAM isn't available on this host."""
    pam_path = ctypes.util.find_library("pam")
    libc_path = ctypes.util.find_library("c")
    if not pam_path or not libc_path:
        logger.warning("libpam not found - PAM authentication disabled")
        return None

    try:
        libpam = ctypes.CDLL(pam_path)
        libc = ctypes.CDLL(libc_path)
    except OSError as e:
        logger.warning("Failed to load libpam", error=str(e))
        return None

    # PAM frees conversation responses with free(), so they come from libc
    libc.calloc.restype = c_void_p
    libc.calloc.argtypes = [c_size_t, c_size_t]
    libc.strdup.restype = c_void_p
    libc.strdup.argtypes = [c_char_p]

    libpam.pam_start.restype = c_int
    libpam.pam_start.argtypes = [c_char_p, c_char_p, POINTER(_PamConv), POINTER(_PamHandle)]
    libpam.pam_authenticate.restype = c_int
    libpam.pam_authenticate.argtypes = [_PamHandle, c_int]
    libpam.pam_acct_mgmt.restype = c_int
    libpam.pam_acct_mgmt.argtypes = [_PamHandle, c_int]
    libpam.pam_end.restype = c_int
    libpam.pam_end.argtypes = [_PamHandle, c_int]
    return libpam, libc


def _conversation(libc: Any, username: bytes, secret: bytes) -> Any:
    """Build the conversation callback answering PAM prompts."""

    def converse(n_messages: int, messages: Any, p_response: Any, app_data: Any) -> int:
        addr = libc.calloc(n_messages, sizeof(_PamResponse))
        if not addr:
            return PAMReturnCode.BUF_ERR
        responses = cast(addr, POINTER(_PamResponse))
        for i in range(n_messages):
            style = messages[i].contents.msg_style
            if style == PAMMessageStyle.PROMPT_ECHO_OFF:
                responses[i].resp = libc.strdup(secret)
            elif style == PAMMessageStyle.PROMPT_ECHO_ON:
                responses[i].resp = libc.strdup(username)
        p_response[0] = responses
        return PAMReturnCode.SUCCESS

    return _ConvFunc(converse)


class PAMAuthenticator(Authenticator):
    """Authenticates users against a PAM service (e.g. pam_sss)."""

    def __init__(self, config: AuthenticatorConfig) -> None:
        self._config = config

    @property
    def authenticator_type(self) -> str:
        return "pam"

    async def authenticate(self, username: str, secret: str) -> bool:
        libs = _load_libpam()
        if libs is None:
            raise AuthenticatorUnavailableError("libpam is not available on this host")
        return await asyncio.to_thread(self._authenticate_blocking, libs, username, secret)

    def _authenticate_blocking(self, libs: tuple[Any, Any], username: str, secret: str) -> bool:
        libpam, libc = libs
        handle = _PamHandle()
        callback = _conversation(libc, username.encode(), secret.encode())
        conv = _PamConv(callback, None)

        rc = libpam.pam_start(
            self._config.service.encode(), username.encode(), byref(conv), byref(handle)
        )
        if rc != PAMReturnCode.SUCCESS:
            raise AuthenticatorUnavailableError(
                f"pam_start failed for service {self._config.service}: {_code_name(rc)}"
            )

        try:
            rc = libpam.pam_authenticate(handle, 0)
            if rc == PAMReturnCode.SUCCESS:
                rc = libpam.pam_acct_mgmt(handle, 0)
        finally:
            libpam.pam_end(handle, rc)

        if rc == PAMReturnCode.SUCCESS:
            return True
        if rc in REJECTION_CODES:
            logger.debug("PAM rejected credentials", username=username, code=_code_name(rc))
            return False
        raise AuthenticatorUnavailableError(f"PAM error for {username}: {_code_name(rc)}")


def _code_name(rc: int) -> str:
    try:
        return PAMReturnCode(rc).name
    except ValueError:
        return str(rc)
