from rest_framework import serializers

from .models import Class, ParentGuardian, Student


class GuardianSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(source='user.id', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = ParentGuardian
        fields = ['id', 'user_id', 'first_name', 'last_name', 'email', 'phone', 'relationship']


class RosterStudentSerializer(serializers.ModelSerializer):
    guardian = GuardianSerializer(read_only=True)

    class Meta:
        model = Student
        fields = ['id', 'admission_number', 'first_name', 'last_name', 'guardian']


class ClassSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)

    class Meta:
        model = Class
        fields = ['id', 'name', 'division', 'label', 'class_teacher']
