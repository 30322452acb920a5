"""Allow ``python -m qrlogin``."""

from qrlogin.app import main

main()
