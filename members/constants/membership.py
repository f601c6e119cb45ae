# members/constants/membership.py
"""
Membership-related constants for the project.

The legacy vocabularies below describe the shapes found in registry exports
produced before lifecycle status was a single field. They are consumed only by
members.lifecycle.boundary; new code should work with LifecycleStatus.
"""

NAME_SUFFIX_CHOICES = [
    ("", "—"),  # blank default
    ("Jr.", "Jr."),
    ("Sr.", "Sr."),
    ("II", "II"),
    ("III", "III"),
    ("IV", "IV"),
    ("V", "V"),
]

# =============================================================================
# Legacy export vocabularies
# =============================================================================

# Flags were stored as booleans, "true" strings, or numeric 0/1 depending on
# which screen wrote the record.
LEGACY_TRUTHY_VALUES = {"true", "1", "yes", "y", "active"}
LEGACY_FALSY_VALUES = {"false", "0", "no", "n", "inactive", ""}

# Keys that have carried the registry identifier, in order of preference.
LEGACY_IDENTIFIER_KEYS = ["oscaID", "memberOscaId", "membershipIdentifier"]

# Keys that have carried a payment timestamp, in order of preference.
LEGACY_PAYMENT_DATE_KEYS = ["date_created", "payDate", "paymentDate"]

# Keys that have carried the last biometric check-in.
LEGACY_CHECKIN_KEYS = ["lastFacialRecognition", "lastCheckIn"]

# Keys that have carried the last time a member record was touched.
LEGACY_UPDATED_KEYS = ["date_updated", "date_created"]
