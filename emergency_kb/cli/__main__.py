"""Allow ``python -m emergency_kb.cli`` execution."""

from emergency_kb.cli.kb import main

main()
