"""Accounts: registration, login, profile and addresses."""

import re
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework import serializers
from drf_spectacular.utils import extend_schema

from .models import CarrierProfile, ShipperProfile, Address

Account = get_user_model()

# ── Validators ────────────────────────────────────────────────────────────────
PHONE_PATTERN = re.compile(r"^\+?\d{9,15}$")


def validate_phone(value):
    if not PHONE_PATTERN.match(value):
        raise serializers.ValidationError("Enter a valid phone number (9–15 digits, optional +).")


# ── Serializers ───────────────────────────────────────────────────────────────
class AccountRegisterSerializer(serializers.ModelSerializer):
    password       = serializers.CharField(write_only=True, min_length=8)
    phone          = serializers.CharField(validators=[validate_phone])
    company_name   = serializers.CharField(required=False, allow_blank=True, write_only=True)
    license_number = serializers.CharField(required=False, allow_blank=True, write_only=True)

    class Meta:
        model  = Account
        fields = ["phone", "email", "full_name", "role", "password", "company_name", "license_number"]

    def validate(self, data):
        if data.get("role") == Account.Role.ADMIN:
            raise serializers.ValidationError({"role": "Admin accounts cannot self-register."})
        if data.get("role") == Account.Role.CARRIER:
            if not data.get("company_name") or not data.get("license_number"):
                raise serializers.ValidationError(
                    "Carriers must provide company_name and license_number."
                )
        return data

    @transaction.atomic
    def create(self, validated_data):
        company_name   = validated_data.pop("company_name", "")
        license_number = validated_data.pop("license_number", "")
        password       = validated_data.pop("password")
        account = Account(**validated_data)
        account.set_password(password)
        account.save()

        if account.role == Account.Role.CARRIER:
            CarrierProfile.objects.create(
                account=account, company_name=company_name, license_number=license_number,
            )
        else:
            ShipperProfile.objects.create(account=account, company_name=company_name)
        return account


class AccountProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model  = Account
        fields = ["id", "phone", "email", "full_name", "role", "created_at"]
        read_only_fields = ["id", "phone", "role", "created_at"]


class AddressSerializer(serializers.ModelSerializer):
    latitude  = serializers.FloatField(required=False, allow_null=True, min_value=-90,  max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)

    class Meta:
        model  = Address
        fields = ["id", "label", "street", "city", "region", "country", "latitude", "longitude", "is_active"]
        read_only_fields = ["id"]


# ── Views ─────────────────────────────────────────────────────────────────────
@extend_schema(tags=["Auth"])
class RegisterView(generics.CreateAPIView):
    """POST /api/auth/register/: Create a shipper or carrier account."""
    queryset         = Account.objects.all()
    serializer_class = AccountRegisterSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = serializer.save()
        return Response(
            {"message": "Account created. Please log in.", "id": str(account.id)},
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Auth"])
class ProfileView(generics.RetrieveUpdateAPIView):
    """GET/PATCH /api/auth/me/: Retrieve or update own profile."""
    serializer_class   = AccountProfileSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


@extend_schema(tags=["Auth"])
class AddressListCreateView(generics.ListCreateAPIView):
    """GET/POST /api/auth/addresses/: own addresses."""
    serializer_class   = AddressSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Address.objects.filter(owner=self.request.user, is_active=True)

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)
