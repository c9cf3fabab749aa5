"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.http import HttpResponseRedirect
from django.utils.html import format_html

from .exceptions import AssetLifecycleError
from .forms import AssetAdminForm
from .models import ArchivedAsset, Asset, ReportedIssue, StatusChangeEvent
from .services.archive import delete_asset, purge_archived
from .services.directory import PersonnelDirectory
from .services.qr import clear_qr, materialize_qr
from .services.state import CONDITIONAL_FIELDS, EDITABLE_FIELDS, apply_edit

ADMIN_DELETION_REASON = "Deleted from the admin"


def _error_text(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


class StatusChangeEventInline(TabularInline):
    model = StatusChangeEvent
    extra = 0
    can_delete = False
    fields = [
        "changed_at",
        "changed_by_identity",
        "from_status",
        "to_status",
        "reason",
        "maintained_by",
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    form = AssetAdminForm
    list_display = [
        "display_header",
        "display_status",
        "category",
        "display_personnel",
        "display_expiry",
        "display_reports",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("operational_period", ChoicesDropdownFilter),
        "category",
        "generate_qr",
    ]
    list_filter_submit = True
    search_fields = ["asset_name", "asset_id", "serial_number"]
    readonly_fields = [
        "record_id",
        "qr_image_preview",
        "canonical_url",
        "version",
        "created_by",
        "created_at",
        "updated_by",
        "updated_at",
    ]
    inlines = [StatusChangeEventInline]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "asset_id",
                    "asset_name",
                    "category",
                    "sub_type",
                    "serial_number",
                    "status",
                    "assigned_personnel",
                )
            },
        ),
        (
            "Status Change",
            {
                "fields": ("reason", "maintained_by"),
                "description": "Recorded in the history when the status "
                "changes.",
            },
        ),
        (
            "Period",
            {
                "fields": (
                    "operational_period",
                    "purchase_date",
                    "renewal_date",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "QR Code",
            {
                "fields": (
                    "generate_qr",
                    "qr_image_preview",
                    "canonical_url",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Tracking",
            {
                "fields": (
                    "record_id",
                    "version",
                    "created_by",
                    "created_at",
                    "updated_by",
                    "updated_at",
                ),
                "classes": ["tab"],
            },
        ),
    )

    actions = ["regenerate_qr", "remove_qr"]

    def get_queryset(self, request):
        return super().get_queryset(request).with_report_counts()

    def get_fieldsets(self, request, obj=None):
        fieldsets = super().get_fieldsets(request, obj)
        if obj is None:
            # New assets start without history
            return [fs for fs in fieldsets if fs[0] != "Status Change"]
        return fieldsets

    # --- Display methods ---

    @display(description="Asset", header=True, ordering="asset_name")
    def display_header(self, obj):
        return obj.asset_name, obj.asset_id

    @display(
        description="Status",
        label={
            "functional": "success",
            "under_maintenance": "warning",
            "defective": "danger",
            "unserviceable": "default",
        },
    )
    def display_status(self, obj):
        return obj.status, obj.get_status_display()

    @display(description="Assigned To", empty_value="-")
    def display_personnel(self, obj):
        directory = PersonnelDirectory.get_cached()
        return directory.display_name(obj.assigned_personnel_id) or None

    @display(
        description="Expiry",
        label={
            "permanent": "info",
            "normal": "success",
            "expiring": "warning",
            "expired": "danger",
        },
    )
    def display_expiry(self, obj):
        badge = obj.expiry
        return badge.kind, badge.label

    @display(description="Reports", ordering="report_count")
    def display_reports(self, obj):
        return obj.report_count

    def qr_image_preview(self, obj):
        if obj.qr_image:
            return format_html(
                '<img src="{}" height="120" />',
                obj.qr_image.url,
            )
        return "-"

    qr_image_preview.short_description = "QR Image"

    # --- Saving and deleting ---

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
            obj.updated_by = request.user
            super().save_model(request, obj, form, change)
            if obj.generate_qr:
                self._materialize(request, obj)
            return

        proposed = {
            name: form.cleaned_data[name]
            for name in form.changed_data
            if name in EDITABLE_FIELDS
        }
        if "status" in proposed:
            for name in CONDITIONAL_FIELDS:
                proposed[name] = form.cleaned_data.get(name, "")
        try:
            apply_edit(obj.pk, proposed, request.user)
        except (ValidationError, AssetLifecycleError) as exc:
            obj._edit_failed = True
            messages.error(request, f"{obj}: {_error_text(exc)}")

    def log_change(self, request, obj, message):
        if getattr(obj, "_edit_failed", False):
            return None
        return super().log_change(request, obj, message)

    def response_change(self, request, obj):
        if getattr(obj, "_edit_failed", False):
            # Back to the form; the error is already in messages
            return HttpResponseRedirect(request.path)
        return super().response_change(request, obj)

    def delete_model(self, request, obj):
        try:
            delete_asset(obj.pk, request.user, ADMIN_DELETION_REASON)
        except (ValidationError, AssetLifecycleError) as exc:
            messages.error(request, f"{obj}: {_error_text(exc)}")

    def delete_queryset(self, request, queryset):
        for asset in queryset:
            self.delete_model(request, asset)

    def _materialize(self, request, obj):
        try:
            materialize_qr(obj.pk)
        except (ValidationError, AssetLifecycleError) as exc:
            messages.error(request, f"{obj}: {_error_text(exc)}")
            return False
        return True

    # --- Actions ---

    @action(description="Generate QR code")
    def regenerate_qr(self, request, queryset):
        count = sum(1 for obj in queryset if self._materialize(request, obj))
        messages.success(request, f"QR code generated for {count} asset(s).")

    @action(description="Remove QR code")
    def remove_qr(self, request, queryset):
        count = 0
        for obj in queryset:
            try:
                clear_qr(obj.pk)
            except AssetLifecycleError as exc:
                messages.error(request, f"{obj}: {exc}")
                continue
            count += 1
        messages.success(request, f"QR code removed from {count} asset(s).")


@admin.register(ReportedIssue)
class ReportedIssueAdmin(ModelAdmin):
    list_display = [
        "asset_name",
        "asset_code",
        "display_condition",
        "reporter_identity",
        "created_at",
    ]
    list_filter = [("condition", ChoicesDropdownFilter)]
    search_fields = ["asset_name", "asset_code", "description"]
    readonly_fields = ["asset_record_id", "reported_by", "created_at"]

    def has_add_permission(self, request):
        # Reports are filed against an existing asset through report_issue
        return False

    @display(
        description="Condition",
        label={
            "damaged": "danger",
            "under_maintenance": "warning",
            "defective": "danger",
            "unserviceable": "default",
        },
    )
    def display_condition(self, obj):
        return obj.condition, obj.get_condition_display()


@admin.register(ArchivedAsset)
class ArchivedAssetAdmin(ModelAdmin):
    list_display = [
        "asset_name",
        "asset_id",
        "category",
        "status",
        "deleted_by",
        "deleted_at",
    ]
    search_fields = ["asset_name", "asset_id", "serial_number", "deleted_by"]
    list_filter = [("status", ChoicesDropdownFilter), "category"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def delete_model(self, request, obj):
        # The admin confirmation page is the explicit confirmation.
        try:
            purge_archived(obj.pk, confirm=True)
        except AssetLifecycleError as exc:
            messages.error(request, f"{obj}: {exc}")

    def delete_queryset(self, request, queryset):
        for archived in queryset:
            self.delete_model(request, archived)
