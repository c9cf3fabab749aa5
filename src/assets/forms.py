"""Admin form for asset edits."""

from unfold.widgets import (
    UnfoldAdminTextareaWidget,
    UnfoldAdminTextInputWidget,
)

from django import forms

from .models import Asset
from .services.state import validate_status_change


class AssetAdminForm(forms.ModelForm):
    """Asset form carrying the details a status change must record."""

    reason = forms.CharField(
        required=False,
        widget=UnfoldAdminTextareaWidget(attrs={"rows": 3}),
        help_text="Required when the status changes.",
    )
    maintained_by = forms.CharField(
        required=False,
        max_length=255,
        widget=UnfoldAdminTextInputWidget,
        help_text="Required when maintenance is completed.",
    )

    class Meta:
        model = Asset
        fields = "__all__"

    def clean(self):
        cleaned_data = super().clean()
        if self.instance._state.adding or "status" not in cleaned_data:
            return cleaned_data

        # self.instance still holds the stored status at this point
        reason = cleaned_data.get("reason", "")
        try:
            validate_status_change(
                self.instance.status,
                cleaned_data["status"],
                reason,
                cleaned_data.get("maintained_by", ""),
            )
        except forms.ValidationError as exc:
            self.add_error(
                "reason" if not reason.strip() else "maintained_by", exc
            )
        return cleaned_data
