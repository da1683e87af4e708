import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('name', models.CharField(help_text='Display name', max_length=255)),
                ('slug', models.SlugField(help_text='URL-safe unique identifier', max_length=255, unique=True)),
                ('owner', models.OneToOneField(help_text='Root user who created the organization', on_delete=django.db.models.deletion.PROTECT, related_name='owned_organization', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'organizations',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('role', models.CharField(choices=[('Administrator', 'Administrator'), ('Manager', 'Manager'), ('Collaborator', 'Collaborator')], default='Collaborator', help_text='Role held inside the organization', max_length=20)),
                ('status', models.CharField(choices=[('invited', 'Invited'), ('active', 'Active'), ('removed', 'Removed')], db_index=True, default='active', help_text='Membership lifecycle status', max_length=20)),
                ('joined_at', models.DateTimeField(blank=True, help_text='When the membership became active', null=True)),
                ('removed_at', models.DateTimeField(blank=True, help_text='When the membership was removed', null=True)),
                ('organization', models.ForeignKey(help_text='Organization this membership belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='tenants.organization')),
                ('user', models.ForeignKey(help_text='Member', on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to=settings.AUTH_USER_MODEL)),
                ('invited_by', models.ForeignKey(blank=True, help_text='User who added or invited the member', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invitations_sent', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'memberships',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='memberships_user_id_6b1e0a_idx'),
                    models.Index(fields=['organization', 'status'], name='memberships_organiz_4c8d21_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('organization', 'user'), name='unique_membership_per_organization'),
                ],
            },
        ),
    ]
