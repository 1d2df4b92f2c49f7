"""
Debt Kernel - collection rules core

The state-governance core of a debt-collection CRM:
- Condition trees and priority-based transition-rule selection
- State-transition legality against a configured graph
- Supervisor authorization workflow for risky transitions
- Persistence adapters for debts, rules and authorization requests
"""

__version__ = "0.1.0"
