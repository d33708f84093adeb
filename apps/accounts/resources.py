from import_export import resources
from django.contrib.auth import get_user_model

User = get_user_model()

DEFAULT_IMPORT_PASSWORD = "ChangeMe!2025"


class UserResource(resources.ModelResource):
    class Meta:
        model = User
        # Password hashes are never exported.
        fields = (
            "id", "username", "first_name", "last_name", "email", "phone",
            "role", "department", "is_active", "is_verified",
        )
        export_order = fields
        skip_unchanged = True
        report_skipped = True
        import_id_fields = ("username",)

    def before_save_instance(self, instance, row, **kwargs):
        if not instance.pk:
            instance.set_password(DEFAULT_IMPORT_PASSWORD)
        role = (instance.role or "").upper()
        instance.role = role if role in User.Role.values else User.Role.STUDENT
