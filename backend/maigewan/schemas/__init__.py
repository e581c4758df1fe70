from maigewan.schemas.forms import (
    AvatarUpload,
    ContactFormSchema,
    CreateGuestBookPostSchema,
    CreatePostCommentSchema,
    DeleteGuestBookPostSchema,
    DeleteNotificationSchema,
    DeletePostCommentSchema,
    FollowUserSchema,
    LikeGuestBookPostSchema,
    LoginUserSchema,
    RegisterUserSchema,
    ResetPasswordSchema,
    UpdateEmailSchema,
    UpdatePasswordSchema,
    UpdateProfileSchema,
    UpdateUsernameSchema,
    empty_form,
)
from maigewan.schemas.image_gen import ImageGenRequest, ImageGenResponse

__all__ = [
    "AvatarUpload",
    "ContactFormSchema",
    "CreateGuestBookPostSchema",
    "CreatePostCommentSchema",
    "DeleteGuestBookPostSchema",
    "DeleteNotificationSchema",
    "DeletePostCommentSchema",
    "FollowUserSchema",
    "ImageGenRequest",
    "ImageGenResponse",
    "LikeGuestBookPostSchema",
    "LoginUserSchema",
    "RegisterUserSchema",
    "ResetPasswordSchema",
    "UpdateEmailSchema",
    "UpdatePasswordSchema",
    "UpdateProfileSchema",
    "UpdateUsernameSchema",
    "empty_form",
]
