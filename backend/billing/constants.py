PLAN_BASIC = 'BASIC'
PLAN_STANDARD = 'STANDARD'
PLAN_PREMIUM = 'PREMIUM'

PLAN_CHOICES = [
    (PLAN_BASIC, 'Basic'),
    (PLAN_STANDARD, 'Standard'),
    (PLAN_PREMIUM, 'Premium'),
]

PLAN_FEATURES = {
    PLAN_BASIC: [
        'products_basic',
        'pdf_export',
    ],
    PLAN_STANDARD: [
        'products_standard',
        'auto_approval',
        'auto_approval_limited',
        'calendar_scheduling',
        'analytics_90_days',
        'custom_invoice_templates',
        'excel_export',
        'pdf_export',
    ],
    PLAN_PREMIUM: [
        'products_unlimited',
        'auto_approval',
        'auto_approval_unlimited',
        'calendar_scheduling',
        'analytics_unlimited',
        'custom_invoice_templates',
        'excel_export',
        'pdf_export',
        'priority_support',
        'api_access',
        'ai_predictions',
    ],
}

# None means unlimited
PLAN_LIMITS = {
    PLAN_BASIC: {
        'max_products': 50,
        'max_auto_approval_rules': 0,
        'max_custom_templates': 1,
        'analytics_history_days': 30,
    },
    PLAN_STANDARD: {
        'max_products': 200,
        'max_auto_approval_rules': 3,
        'max_custom_templates': 3,
        'analytics_history_days': 90,
    },
    PLAN_PREMIUM: {
        'max_products': None,
        'max_auto_approval_rules': None,
        'max_custom_templates': None,
        'analytics_history_days': None,
    },
}

PLAN_HIERARCHY = {
    PLAN_BASIC: 1,
    PLAN_STANDARD: 2,
    PLAN_PREMIUM: 3,
}

UPGRADE_PATH = {
    PLAN_BASIC: PLAN_STANDARD,
    PLAN_STANDARD: PLAN_PREMIUM,
    PLAN_PREMIUM: None,
}

UPGRADE_MESSAGES = {
    'products_basic': "Your BASIC plan allows up to 50 products. Upgrade to STANDARD for 200 products.",
    'products_standard': "Your STANDARD plan allows up to 200 products. Upgrade to PREMIUM for unlimited products.",
    'products_unlimited': "Upgrade to PREMIUM for unlimited products.",
    'auto_approval': (
        "Auto-approval rules are available on STANDARD and PREMIUM plans. "
        "Upgrade to automate your workflow."
    ),
    'auto_approval_limited': (
        "Your STANDARD plan allows up to 3 auto-approval rules. Upgrade to PREMIUM for unlimited rules."
    ),
    'auto_approval_unlimited': "Upgrade to PREMIUM for unlimited auto-approval rules.",
    'calendar_scheduling': "Calendar scheduling is available on STANDARD and PREMIUM plans.",
    'analytics_90_days': "Your STANDARD plan shows 90 days of history. Upgrade to PREMIUM for unlimited history.",
    'analytics_unlimited': "Upgrade to PREMIUM for unlimited analytics history.",
    'custom_invoice_templates': (
        "Custom invoice templates are available on STANDARD (3 templates) and PREMIUM (unlimited)."
    ),
    'excel_export': "Excel export is available on STANDARD and PREMIUM plans.",
    'pdf_export': "PDF export is available on all plans.",
    'priority_support': "Priority support is available on the PREMIUM plan.",
    'api_access': "API access is available on the PREMIUM plan.",
    'ai_predictions': "AI-powered predictions are available on the PREMIUM plan.",
}

# Which feature's upgrade message explains a limit on a given plan
LIMIT_FEATURES = {
    'max_products': {
        PLAN_BASIC: 'products_basic',
        PLAN_STANDARD: 'products_standard',
        PLAN_PREMIUM: 'products_unlimited',
    },
    'max_auto_approval_rules': {
        PLAN_BASIC: 'auto_approval',
        PLAN_STANDARD: 'auto_approval_limited',
        PLAN_PREMIUM: 'auto_approval_unlimited',
    },
}

DEFAULT_PLANS = {
    PLAN_BASIC: {
        'name': 'Basic Plan',
        'amount': 50,
        'description': 'Up to 50 products, manual delivery approval.',
    },
    PLAN_STANDARD: {
        'name': 'Standard Plan',
        'amount': 100,
        'description': 'Up to 200 products, 3 auto-approval rules, calendar scheduling.',
    },
    PLAN_PREMIUM: {
        'name': 'Premium Plan',
        'amount': 200,
        'description': 'Unlimited products and auto-approval rules, priority support.',
    },
}
