import uuid

import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AuditLogEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('organization_id', models.UUIDField(db_index=True, help_text='Organization the audited entity belongs to')),
                ('actor_id', models.UUIDField(blank=True, db_index=True, help_text='User who performed the action (null for system actions)', null=True)),
                ('action', models.CharField(db_index=True, help_text="Namespaced action (e.g., 'domain.obra_created')", max_length=100)),
                ('entity_type', models.CharField(help_text="Entity name (e.g., 'obra', 'rdo', 'membership')", max_length=50)),
                ('entity_id', models.UUIDField(blank=True, help_text='ID of the audited entity', null=True)),
                ('metadata', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder, help_text='Created payload, field diff or deleted snapshot')),
                ('request_id', models.CharField(blank=True, db_index=True, default='', help_text='Request ID for tracing', max_length=64)),
            ],
            options={
                'verbose_name_plural': 'audit log entries',
                'db_table': 'audit_log_entries',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['organization_id', 'created_at'], name='audit_log_e_organiz_8a2f10_idx'),
                    models.Index(fields=['entity_type', 'entity_id'], name='audit_log_e_entity__3d9b47_idx'),
                    models.Index(fields=['organization_id', 'action', 'created_at'], name='audit_log_e_organiz_e51c08_idx'),
                ],
            },
        ),
    ]
