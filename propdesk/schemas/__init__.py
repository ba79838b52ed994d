from .audit import AuditLogSchema
from .invite import InviteAcceptSchema, InviteSendSchema, InviteTokenSchema
from .maintenance import (AssignSchema, CommentSchema, FeedbackSchema, PublicCommentSchema, PublicLinkSchema,
                          PublicUpdateSchema, RequestCreateSchema, RequestUpdateSchema)
from .onboarding import OnboardingDocumentSchema
from .property import AssignTenantSchema, AssignUserSchema, PropertySchema, UnitSchema
from .scheduled import FrequencySchema, ScheduledMaintenanceSchema
from .user import (ChangePasswordSchema, ForgotPasswordSchema, LoginSchema, NewPasswordSchema, ProfileUpdateSchema,
                   RegisterSchema, RoleSchema, UserCreateSchema, UserSchema, UserUpdateSchema)
from .vendor import RatingSchema, VendorSchema
