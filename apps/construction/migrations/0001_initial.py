import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def base_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
        ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
        ('organization', models.ForeignKey(help_text='Organization that owns this row', on_delete=django.db.models.deletion.PROTECT, related_name='+', to='tenants.organization')),
        ('owner', models.ForeignKey(help_text='User who created this row', on_delete=django.db.models.deletion.PROTECT, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the row was soft deleted', null=True)),
        ('deleted_by', models.ForeignKey(blank=True, help_text='User who deleted this row', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('tenants', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Site',
            fields=base_fields() + [
                ('name', models.CharField(max_length=255)),
                ('slug', models.SlugField(blank=True, max_length=255)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('client', models.CharField(blank=True, max_length=255)),
                ('kind', models.CharField(choices=[('residential', 'Residential'), ('commercial', 'Commercial'), ('industrial', 'Industrial'), ('infrastructure', 'Infrastructure'), ('renovation', 'Renovation')], default='residential', max_length=20)),
                ('status', models.CharField(choices=[('planning', 'Planning'), ('in_progress', 'In progress'), ('paused', 'Paused'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='planning', max_length=20)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('expected_end_date', models.DateField(blank=True, null=True)),
                ('budget', models.DecimalField(blank=True, decimal_places=2, help_text='Planned budget', max_digits=14, null=True)),
            ],
            options={
                'db_table': 'sites',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['organization', 'status'], name='sites_organiz_2b7e91_idx')],
            },
        ),
        migrations.CreateModel(
            name='DailyReport',
            fields=base_fields() + [
                ('date', models.DateField(db_index=True)),
                ('weather', models.CharField(blank=True, choices=[('sunny', 'Sunny'), ('cloudy', 'Cloudy'), ('rainy', 'Rainy'), ('stormy', 'Stormy')], max_length=20)),
                ('activities', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='draft', max_length=20)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('site', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='daily_reports', to='construction.site')),
            ],
            options={
                'db_table': 'daily_reports',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['organization', 'owner'], name='daily_repor_organiz_5f0c3a_idx'),
                    models.Index(fields=['site', 'date'], name='daily_repor_site_id_9d41e7_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=base_fields() + [
                ('description', models.CharField(max_length=255)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('category', models.CharField(choices=[('materials', 'Materials'), ('labor', 'Labor'), ('equipment', 'Equipment'), ('services', 'Services'), ('other', 'Other')], default='other', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=20)),
                ('spent_on', models.DateField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('site', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='expenses', to='construction.site')),
            ],
            options={
                'db_table': 'expenses',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Equipment',
            fields=base_fields() + [
                ('name', models.CharField(max_length=255)),
                ('code', models.CharField(blank=True, max_length=64)),
                ('status', models.CharField(choices=[('available', 'Available'), ('in_use', 'In use'), ('maintenance', 'Maintenance')], default='available', max_length=20)),
                ('site', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='equipment', to='construction.site')),
            ],
            options={
                'verbose_name_plural': 'equipment',
                'db_table': 'equipment',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='TeamMember',
            fields=base_fields() + [
                ('name', models.CharField(max_length=255)),
                ('function', models.CharField(blank=True, max_length=100)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('last_attendance_at', models.DateTimeField(blank=True, null=True)),
                ('site', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='team_members', to='construction.site')),
            ],
            options={
                'db_table': 'team_members',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Document',
            fields=base_fields() + [
                ('title', models.CharField(max_length=255)),
                ('kind', models.CharField(choices=[('contract', 'Contract'), ('blueprint', 'Blueprint'), ('permit', 'Permit'), ('invoice', 'Invoice'), ('photo', 'Photo'), ('other', 'Other')], default='other', max_length=20)),
                ('storage_path', models.CharField(blank=True, max_length=500)),
                ('site', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='documents', to='construction.site')),
            ],
            options={
                'db_table': 'documents',
                'ordering': ['-created_at'],
            },
        ),
    ]
