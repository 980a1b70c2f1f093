"""
pkgsig - Package signing trust metadata.

Answers "is this host actually verifying the packages it installs?"

pkgsig provides:
- Summaries of OpenPGP public keys (fingerprint, algorithm, expiration)
- Reconciliation of repository gpgcheck / repo_gpgcheck settings
- A config-driven audit run producing a JSON report
"""

__version__ = "0.3.1"
