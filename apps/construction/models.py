"""
Construction resources.

Every model here belongs to exactly one organization and is read and
written through the data access gateway.
"""
from django.db import models
from apps.tenants.models import TenantScopedModel


class Site(TenantScopedModel):
    """
    Construction site (obra).
    """

    KIND_CHOICES = [
        ('residential', 'Residential'),
        ('commercial', 'Commercial'),
        ('industrial', 'Industrial'),
        ('infrastructure', 'Infrastructure'),
        ('renovation', 'Renovation'),
    ]

    STATUS_CHOICES = [
        ('planning', 'Planning'),
        ('in_progress', 'In progress'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    audit_entity = 'obra'

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, blank=True)
    location = models.CharField(max_length=255, blank=True)
    client = models.CharField(max_length=255, blank=True)
    kind = models.CharField(
        max_length=20,
        choices=KIND_CHOICES,
        default='residential'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='planning',
        db_index=True
    )
    start_date = models.DateField(null=True, blank=True)
    expected_end_date = models.DateField(null=True, blank=True)
    budget = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Planned budget"
    )

    class Meta:
        db_table = 'sites'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'status'], name='sites_organiz_2b7e91_idx'),
        ]

    def __str__(self):
        return self.name


class DailyReport(TenantScopedModel):
    """
    Daily construction report (RDO).

    Members see only the reports they wrote unless their role holds
    ``rdo.view.any``.
    """

    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    WEATHER_CHOICES = [
        ('sunny', 'Sunny'),
        ('cloudy', 'Cloudy'),
        ('rainy', 'Rainy'),
        ('stormy', 'Stormy'),
    ]

    audit_entity = 'rdo'
    owner_scoped_reads = True
    action_only_fields = ('approved_by', 'approved_at')
    action_only_values = {'status': (STATUS_APPROVED, STATUS_REJECTED)}

    site = models.ForeignKey(
        Site,
        on_delete=models.PROTECT,
        related_name='daily_reports'
    )
    date = models.DateField(db_index=True)
    weather = models.CharField(max_length=20, choices=WEATHER_CHOICES, blank=True)
    activities = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True
    )
    approved_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+'
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'daily_reports'
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['organization', 'owner'], name='daily_repor_organiz_5f0c3a_idx'),
            models.Index(fields=['site', 'date'], name='daily_repor_site_id_9d41e7_idx'),
        ]

    def __str__(self):
        return f"RDO {self.date} ({self.status})"


class Expense(TenantScopedModel):
    """
    Expense recorded against the organization, optionally tied to a site.
    """

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    CATEGORY_CHOICES = [
        ('materials', 'Materials'),
        ('labor', 'Labor'),
        ('equipment', 'Equipment'),
        ('services', 'Services'),
        ('other', 'Other'),
    ]

    audit_entity = 'expense'
    action_only_fields = ('status', 'approved_by', 'approved_at')

    site = models.ForeignKey(
        Site,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='expenses'
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True
    )
    spent_on = models.DateField(null=True, blank=True)
    approved_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+'
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'expenses'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.description} ({self.amount})"


class Equipment(TenantScopedModel):
    """Equipment item (equipamento)."""

    STATUS_CHOICES = [
        ('available', 'Available'),
        ('in_use', 'In use'),
        ('maintenance', 'Maintenance'),
    ]

    audit_entity = 'equipamento'

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='available')
    site = models.ForeignKey(
        Site,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='equipment'
    )

    class Meta:
        db_table = 'equipment'
        ordering = ['name']
        verbose_name_plural = 'equipment'

    def __str__(self):
        return self.name


class TeamMember(TenantScopedModel):
    """Field worker (colaborador). Not a platform user."""

    audit_entity = 'colaborador'

    name = models.CharField(max_length=255)
    function = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    site = models.ForeignKey(
        Site,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='team_members'
    )
    last_attendance_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'team_members'
        ordering = ['name']

    def __str__(self):
        return self.name


class Document(TenantScopedModel):
    """Document metadata. Storage and upload handling live elsewhere."""

    KIND_CHOICES = [
        ('contract', 'Contract'),
        ('blueprint', 'Blueprint'),
        ('permit', 'Permit'),
        ('invoice', 'Invoice'),
        ('photo', 'Photo'),
        ('other', 'Other'),
    ]

    audit_entity = 'documento'

    site = models.ForeignKey(
        Site,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='documents'
    )
    title = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, default='other')
    storage_path = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']

    def __str__(self):
        return self.title
