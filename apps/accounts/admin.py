from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from import_export.admin import ImportExportModelAdmin

from .resources import UserResource

User = get_user_model()


@admin.register(User)
class UserAdmin(ImportExportModelAdmin, BaseUserAdmin):
    resource_classes = [UserResource]
    list_display = ("id", "username", "email", "role", "department", "is_tutor", "is_active")
    list_filter = ("role", "is_tutor", "tutor_application_status", "is_verified", "is_active")
    search_fields = ("username", "email", "phone", "first_name", "last_name")
    ordering = ("username",)

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Profile",
            {
                "fields": (
                    "role",
                    "phone",
                    "department",
                    "bio",
                    "is_verified",
                    "is_tutor",
                    "tutor_application_status",
                )
            },
        ),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (None, {"fields": ("role", "email")}),
    )
