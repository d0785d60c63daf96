from rest_framework import serializers

from .models import Company, CompanyMembership, User


class CompanySerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)

    class Meta:
        model = Company
        fields = (
            "id",
            "name",
            "legal_name",
            "owner_name",
            "registration_number",
            "tax_identification_number",
            "sst_registration_number",
            "msic_code",
            "business_activity",
            "email",
            "phone_number",
            "address",
            "street",
            "city",
            "postcode",
            "state",
            "country",
            "currency",
            "logo_url",
            "subscription_status",
            "trial_end_date",
            "updated_at",
        )
        read_only_fields = fields


class CompanyUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    legal_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    owner_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    registration_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    tax_identification_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    sst_registration_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    msic_code = serializers.CharField(max_length=5, required=False, allow_blank=True)
    business_activity = serializers.CharField(max_length=255, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    postcode = serializers.CharField(max_length=10, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    logo_url = serializers.URLField(required=False, allow_blank=True)


class UserSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)

    class Meta:
        model = User
        fields = ("id", "email", "name", "phone_number")


class MembershipSerializer(serializers.ModelSerializer):
    company = CompanySerializer(read_only=True)

    class Meta:
        model = CompanyMembership
        fields = ("role", "is_active", "company")


class RegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PasswordLoginSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_blank=True)
    phone_number = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = attrs.get("email") or attrs.get("phone_number")
        if not identifier:
            raise serializers.ValidationError("Email or phone number is required.")
        attrs["identifier"] = identifier
        return attrs


class TacRequestSerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=20)


class TacLoginSerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=20)
    tac = serializers.RegexField(r"^\d{6}$", error_messages={"invalid": "Enter the 6-digit code."})


class UpdateEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)


class SwitchCompanySerializer(serializers.Serializer):
    company_id = serializers.UUIDField()
