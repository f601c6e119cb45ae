"""
Membership lifecycle reconciliation.

Decides whether a member is Active, Archived or Deceased from observed
activity and explicit operator actions, and applies the decision with
conditional writes so that independent invocations converge.

    aggregator  - latest activity per registry identifier
    policy      - pure status evaluation
    runner      - automatic reconciliation passes
    gateway     - guarded manual overrides
    notifier    - audit reporting of applied transitions
    stores      - Django-backed collaborators and factories
    boundary    - coercion of legacy registry exports
"""
