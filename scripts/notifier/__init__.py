"""
GLPI notifier daemon package.

Polls GLPI for tickets in status New and shows one desktop notification per
ticket, tracking already-notified ids on disk.
"""
