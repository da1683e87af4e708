"""
System checks for the static policy table.
"""
from django.core.checks import Error, register


@register('rbac')
def check_policy_table(app_configs, **kwargs):
    from apps.rbac.policy import POLICY_TABLE

    return [
        Error(message, obj='apps.rbac.policy.POLICY_TABLE', id=check_id)
        for check_id, message in POLICY_TABLE.validate()
    ]
