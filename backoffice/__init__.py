"""
Back-Office Product Console

Client-side consistency model for bank product configuration: GL mapping
type rules, fee calculation-base gating, effective-date windows and
eligibility rule syntax, enforced before requests reach the remote
back-office service.
"""

__version__ = "1.0.0"
