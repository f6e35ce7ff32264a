"""
Command Line Interface Package

Click-based shell over the JSON entity store.

Command Structure:
- bookkeeping: Main entry point with utility commands (version, config)
- bookkeeping import / accounts / reconcile: ledger changes
- bookkeeping rules load|list|apply: mapping rules
- bookkeeping report balance-sheet|profit-loss|cash-flow|spending: reports
"""
