from tenant_admin.schemas.tenant import TenantCreate, TenantUpdate, TenantRead
from tenant_admin.schemas.tenant_admin import TenantRef, RestoreRequest, DocumentRef, TenantStatsRequest
from tenant_admin.schemas.usage import UsageSummary, UsageReport
