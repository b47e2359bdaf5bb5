from tenant_admin.models.tenant import Tenant
from tenant_admin.models.tenant_identifier import TenantIdentifier, IdentifierType
from tenant_admin.models.membership import Membership, MembershipRole
from tenant_admin.models.profile import Profile
from tenant_admin.models.document import Document
from tenant_admin.models.transaction import Transaction
from tenant_admin.models.line_item import LineItem
from tenant_admin.models.bank_account import BankAccount
from tenant_admin.models.tenant_settings import TenantSettings, TenantStatistics
from tenant_admin.models.ai_usage_event import AiUsageEvent
from tenant_admin.models.billing import SystemSetting, UserSubscription
