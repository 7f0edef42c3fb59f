"""
Core constants for the support directory service
"""


class Roles:
    """Account roles"""

    ROOT = "root"
    SUB = "sub"
    CLIENT = "client"

    ALL = (ROOT, SUB, CLIENT)
    ADMINS = (ROOT, SUB)


class OTPChannels:
    SMS = "sms"
    WHATSAPP = "whatsapp"
    CALL = "call"
    EMAIL = "email"

    ALL = (SMS, WHATSAPP, CALL, EMAIL)
    DEFAULT = SMS


class OTPStatus:
    PENDING = "pending"
    APPROVED = "approved"


class TokenPurpose:
    SEARCH_OTP = "search-otp"


class Pagination:
    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 10
    MAX_LIMIT = 100
    VISIT_LOGS_DEFAULT_LIMIT = 50
    VISIT_LOGS_MAX_LIMIT = 200


ROOT_USER_ID = "ROOT-ADMIN"
ROOT_BRANCH_NAME = "Root"
OTP_TOKEN_HEADER = "x-otp-token"
OTP_TOKEN_QUERY_PARAM = "otpToken"
