"""Extract fingerprints from gpg's textual key reports."""

from __future__ import annotations

import re

from gpgscope.errors import FingerprintParseError

# Human-readable report: "      Key fingerprint = AB98 FD9C 260F ..."
_LABELLED_PATTERN = re.compile(r"^\s*Key fingerprint = ([A-F0-9][A-F0-9 ]*)", re.MULTILINE)

# --with-colons report: "fpr:::::::::AB98FD9C260FD9F4E323BB8E1084E2961A0D3FC6:"
_COLON_PATTERN = re.compile(r"^fpr:(?:[^:\n]*:){8}([A-Fa-f0-9]+):", re.MULTILINE)

_WHITESPACE = re.compile(r"\s+")


def parse_fingerprint(output: str) -> str:
    """Return the first key fingerprint in *output*, uppercase and unspaced.

    Raises:
        FingerprintParseError: No fingerprint line was found. This means gpg's
            output format changed or the input was not key material.
    """
    for pattern in (_LABELLED_PATTERN, _COLON_PATTERN):
        match = pattern.search(output)
        if match:
            return _WHITESPACE.sub("", match.group(1)).upper()
    raise FingerprintParseError(
        f"Cannot find key fingerprint in unexpected output from gpg: {output!r}",
        output=output,
    )
