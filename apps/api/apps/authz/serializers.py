"""
Authz serializers for the staff directory.
"""
from rest_framework import serializers

from apps.authz.models import Role, RoleChoices, User, UserRole


class UserSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'is_active', 'roles', 'created_at']
        read_only_fields = fields

    def get_roles(self, obj):
        return sorted(obj.role_names())


class UserWriteSerializer(serializers.ModelSerializer):
    """Create/update staff accounts (admin only)."""
    password = serializers.CharField(write_only=True, required=False, min_length=8)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=RoleChoices.choices),
        required=False,
        allow_empty=False,
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'is_active', 'password', 'roles']
        read_only_fields = ['id']

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'La contraseña es obligatoria.'})
        return attrs

    def create(self, validated_data):
        roles = validated_data.pop('roles', [])
        password = validated_data.pop('password')
        user = User.objects.create_user(password=password, **validated_data)
        self._set_roles(user, roles)
        return user

    def update(self, instance, validated_data):
        roles = validated_data.pop('roles', None)
        password = validated_data.pop('password', None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if password:
            instance.set_password(password)
        instance.save()
        if roles is not None:
            self._set_roles(instance, roles)
        return instance

    def to_representation(self, instance):
        return UserSerializer(instance, context=self.context).data

    @staticmethod
    def _set_roles(user, roles):
        UserRole.objects.filter(user=user).exclude(role__name__in=roles).delete()
        for name in roles:
            role, _ = Role.objects.get_or_create(name=name)
            UserRole.objects.get_or_create(user=user, role=role)
