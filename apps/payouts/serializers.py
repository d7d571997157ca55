from rest_framework import serializers

from .models import BankAccount, PayoutRequest


class BankAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankAccount
        fields = [
            "id",
            "bank_name",
            "account_holder_name",
            "account_number",
            "iban",
            "swift_code",
            "bank_country",
            "verification_status",
            "created_at",
        ]
        read_only_fields = ["id", "verification_status", "created_at"]


class PayoutRequestSerializer(serializers.ModelSerializer):
    seller_email = serializers.EmailField(source="seller.email", read_only=True)
    bank_name = serializers.CharField(source="bank_account.bank_name", read_only=True)

    class Meta:
        model = PayoutRequest
        fields = [
            "id",
            "seller",
            "seller_email",
            "bank_account",
            "bank_name",
            "amount_requested",
            "amount_fees",
            "amount_to_transfer",
            "currency",
            "status",
            "merchant_note",
            "admin_notes",
            "rejection_reason",
            "requested_at",
            "reviewed_at",
            "paid_at",
        ]
        read_only_fields = fields


class CreatePayoutSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    bank_account = serializers.PrimaryKeyRelatedField(queryset=BankAccount.objects.all())
    note = serializers.CharField(required=False, allow_blank=True, default="")
