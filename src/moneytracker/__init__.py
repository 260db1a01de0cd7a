"""MoneyTracker: offline-first personal finance client.

Writes go to the remote store when the network is up and into a durable
local queue when it is not. The queue drains on reconnect and on a fixed
tick. Budget alerts and bill reminders are computed client-side.
"""
__version__ = "1.0.0"
