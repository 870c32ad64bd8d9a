"""
Reference data for the order-management domain.

Static lookup tables used by the entity generators: Egyptian areas, cities
and coordinates, industries, product catalogue building blocks, maintenance
catalogues, and the fixed reason lists attached to lifecycle events.
"""

# ================================
# PEOPLE AND CONTACT DETAILS
# ================================

PHONE_PREFIXES = ["010", "011", "012", "015"]

CONTACT_POSITIONS = ["Manager", "Owner", "Purchasing", "Warehouse", "Reception"]

USER_ROLE_WEIGHTS = {
    "Admin": 0.05,
    "Manager": 0.15,
    "Sales": 0.50,
    "Support": 0.30,
}

USER_EMAIL_DOMAIN = "orders.example.com"

# ================================
# COMPANIES
# ================================

INDUSTRIES = [
    "Hospitality",
    "Restaurant",
    "Cafe",
    "Hotel",
    "Catering",
    "Corporate Office",
    "Co-working Space",
    "Retail",
    "Healthcare",
    "Education",
]

COMPANY_STATUSES = ["Active", "Active", "Active", "Inactive", "New"]

MAINTENANCE_LOCATIONS = ["inside_cairo", "outside_cairo", "sahel"]

PAYMENT_METHODS = ["transfer", "check"]

# Payment term templates; one is picked per company
PAYMENT_CONFIGS = [
    {"payment_due_type": "immediate"},
    {"payment_due_type": "days_after_order", "payment_due_days": 15},
    {"payment_due_type": "days_after_order", "payment_due_days": 30},
    {"payment_due_type": "monthly_date", "payment_due_date": 1},
    {
        "payment_due_type": "bulk_schedule",
        "bulk_payment_schedule": {"frequency": "quarterly", "day_of_month": 1},
    },
]

# Lower bounds of the payment status bands, best first
PAYMENT_SCORE_BANDS = [
    (90, "excellent"),
    (75, "good"),
    (60, "fair"),
    (40, "poor"),
]

SUSPENSION_REASON = "Payment score below credit threshold"

# ================================
# GEOGRAPHY
# ================================

AREA_TO_CITY = {
    "Maadi": "Cairo",
    "Zamalek": "Cairo",
    "Heliopolis": "Cairo",
    "Nasr City": "Cairo",
    "New Cairo": "New Cairo",
    "Downtown": "Cairo",
    "Mohandessin": "Cairo",
    "Dokki": "Giza",
    "6th of October": "6th of October",
    "Sheikh Zayed": "6th of October",
    "Giza": "Giza",
    "El Tagamoa": "New Cairo",
    "5th Settlement": "New Cairo",
    "Sharm El Sheikh": "Sharm El Sheikh",
    "Hurghada": "Hurghada",
    "Alexandria - Smouha": "Alexandria",
    "Alexandria - Roushdy": "Alexandria",
    "Alexandria - Kafr Abdo": "Alexandria",
}

AREAS = list(AREA_TO_CITY)

# lat, lng, radius in degrees
CITY_COORDINATES = {
    "Cairo": (30.0444, 31.2357, 0.15),
    "Giza": (30.0131, 31.2089, 0.1),
    "Alexandria": (31.2001, 29.9187, 0.12),
    "6th of October": (29.9285, 30.9188, 0.08),
    "New Cairo": (30.0301, 31.4725, 0.1),
    "Sharm El Sheikh": (27.9158, 34.3300, 0.05),
    "Hurghada": (27.2579, 33.8116, 0.05),
}

CITY_TO_GOVERNORATE = {
    "Cairo": "Cairo",
    "Giza": "Giza",
    "New Cairo": "Cairo",
    "6th of October": "Giza",
    "Alexandria": "Alexandria",
    "Sharm El Sheikh": "South Sinai",
    "Hurghada": "Red Sea",
}

STREET_NAMES = [
    "El Tahrir",
    "El Gomhoreya",
    "El Nasr",
    "El Salam",
    "El Horreya",
    "Mohamed Ali",
    "Ramses",
    "El Nil",
    "El Azhar",
    "Salah Salem",
    "Ahmed Orabi",
    "Abdel Nasser",
    "El Merghany",
    "El Thawra",
    "El Nozha",
    "El Ahram",
    "El Haram",
]

STREET_SUFFIXES = ["St", "Street", "Avenue", "Sq"]

WAREHOUSE_NOTES = "Warehouse entrance from side street"

# ================================
# PRODUCTS
# ================================

CATEGORY_PRICE_RANGES = {
    "Coffee Beans": (150, 800),
    "Ground Coffee": (120, 600),
    "Espresso": (200, 900),
    "Cold Brew": (80, 250),
    "Tea": (50, 300),
    "Syrups": (100, 350),
    "Milk & Alternatives": (30, 120),
    "Equipment": (500, 15000),
    "Accessories": (50, 800),
    "Consumables": (30, 200),
}

PRODUCT_CATEGORIES = list(CATEGORY_PRICE_RANGES)

COFFEE_ORIGINS = [
    "Ethiopian Yirgacheffe",
    "Colombian Supremo",
    "Kenyan AA",
    "Brazilian Santos",
    "Guatemalan Antigua",
    "Costa Rican Tarrazu",
    "Jamaican Blue Mountain",
    "Sumatra Mandheling",
    "Yemen Mocha",
    "Hawaiian Kona",
]

ROAST_LEVELS = ["Light", "Medium", "Medium-Dark", "Dark", "French"]

GRIND_SIZES = ["Whole Bean", "Coarse", "Medium", "Fine", "Espresso"]

PACKAGE_SIZE_MULTIPLIERS = {
    "250g": 0.6,
    "500g": 1.0,
    "1kg": 1.8,
    "2.5kg": 4.0,
    "5kg": 7.5,
}

MANUFACTURERS = [
    {"id": "mfr-001", "name": "Premium Roasters"},
    {"id": "mfr-002", "name": "Artisan Coffee Co."},
    {"id": "mfr-003", "name": "Global Beans Ltd."},
    {"id": "mfr-004", "name": "Mountain Valley"},
    {"id": "mfr-005", "name": "Sunrise Beverages"},
]

# Name parts per category: list of option lists joined with spaces
PRODUCT_NAME_PARTS = {
    "Tea": [["Earl Grey", "English Breakfast", "Green", "Chamomile", "Jasmine"], ["Tea"]],
    "Syrups": [["Vanilla", "Caramel", "Hazelnut", "Mocha", "Cinnamon"], ["Syrup"]],
    "Milk & Alternatives": [["Oat", "Almond", "Soy", "Coconut", "Barista"], ["Milk"]],
    "Equipment": [
        ["Pro", "Commercial", "Barista", "Elite"],
        ["Grinder", "Tamper", "Scale", "Kettle"],
    ],
    "Accessories": [
        ["Premium", "Classic", "Pro"],
        ["Cups", "Filters", "Pitcher", "Thermometer"],
    ],
    "Consumables": [
        ["Paper", "Cleaning", "Descaling"],
        ["Filters", "Tablets", "Solution"],
    ],
}

DESCRIPTION_ADJECTIVES = [
    "premium",
    "artisan",
    "carefully sourced",
    "hand-crafted",
    "specialty",
]

BASE_SALES_PER_PRODUCT = 500

# ================================
# ORDERS AND FULFILMENT
# ================================

TAX_RATE = 0.14
TAX_ID = "vat-14"

CANCELLATION_REASONS = [
    "Customer requested cancellation",
    "Out of stock",
    "Payment issue",
    "Delivery area not serviceable",
    "Duplicate order",
    "Price dispute",
]

DUPLICATE_MARKER = "[POTENTIAL_DUPLICATE]"

DELIVERY_FAILURE_REASONS = [
    "Customer not available",
    "Wrong address",
    "Access denied",
    "Weather conditions",
    "Vehicle breakdown",
    "Customer refused delivery",
    "Could not locate address",
    "Security restrictions",
]

DRIVER_NAMES = [
    "Ahmed Mohamed",
    "Mohamed Hassan",
    "Mahmoud Ali",
    "Ibrahim Salem",
    "Khaled Omar",
    "Youssef Ahmed",
    "Hassan Kamal",
    "Omar Farouk",
]

RESTOCK_THRESHOLD = 100
STOCK_BUFFER = 1000

DISCOUNT_REASONS = [
    "Loyalty discount",
    "Volume discount",
    "First order discount",
    "Seasonal promotion",
    "Manager approval",
    "Price match",
    "Bulk order discount",
    "Holiday special",
    "Anniversary discount",
    "Referral bonus",
]

RETURN_REASONS = [
    "Product damaged during delivery",
    "Wrong product delivered",
    "Product quality issue",
    "Customer changed mind",
    "Product expired",
    "Quantity mismatch",
    "Packaging damaged",
    "Product not as described",
]

REFUND_REJECTION_REASONS = [
    "Return policy expired",
    "Product used/opened",
    "No proof of purchase",
    "Product tampered",
    "Outside return window",
]

# ================================
# MAINTENANCE
# ================================

TECHNICIAN_NAMES = [
    "Eng. Ahmed Hassan",
    "Eng. Mohamed Salem",
    "Eng. Mahmoud Kamal",
    "Eng. Ibrahim Farouk",
    "Eng. Khaled Nasser",
    "Eng. Youssef Mohamed",
]

PROBLEM_REASONS = [
    "Machine not heating",
    "Water leak",
    "Grinder malfunction",
    "Pressure issues",
    "Steam wand blocked",
    "Display error",
    "Power issues",
    "Unusual noise",
    "Coffee quality issues",
    "Descaling required",
]

SPARE_PART_PRICES = {
    "Heating Element": (500, 1500),
    "Pump": (800, 2500),
    "Grinder Burrs": (400, 1200),
    "Gasket Set": (100, 300),
    "Portafilter": (200, 600),
    "Steam Valve": (300, 800),
    "Group Head": (600, 1800),
    "Water Filter": (150, 400),
    "O-Ring Kit": (50, 150),
    "Pressure Gauge": (200, 500),
}

SERVICE_COSTS = {
    "Full Service": (500, 1500),
    "Descaling": (200, 400),
    "Calibration": (300, 600),
    "Deep Cleaning": (250, 500),
    "Repair Labor": (150, 400),
    "Diagnostic": (100, 250),
    "Emergency Call-out": (300, 800),
}

VISIT_DELAY_REASONS = [
    "Traffic",
    "Previous job overran",
    "Parts delay",
    "Scheduling conflict",
]

# Cumulative thresholds for visit status
MAINTENANCE_STATUS_THRESHOLDS = [
    (0.6, "Completed"),
    (0.75, "Scheduled"),
    (0.85, "In Progress"),
    (0.92, "Follow-up Required"),
    (0.97, "Waiting for Parts"),
    (1.0, "Cancelled"),
]

NON_RESOLUTION_REASON = "Requires additional parts or follow-up"
CRITICAL_FAILURE_REASON = "Critical failure - requires specialist attention"
SUPPLY_DELAY_REASON = "Parts supply chain issue"

# ================================
# AUDIT LOG
# ================================

ENTITY_ACTIONS = {
    "order": [
        "order.created",
        "order.updated",
        "order.status_changed",
        "order.payment_marked",
        "order.cancelled",
        "order.delivery_confirmed",
        "order.exported",
    ],
    "company": [
        "company.created",
        "company.updated",
        "company.status_changed",
        "company.payment_config_updated",
        "company.suspended",
        "company.activated",
    ],
    "product": [
        "product.created",
        "product.updated",
        "product.stock_adjusted",
        "product.price_changed",
        "product.discontinued",
    ],
    "maintenance": [
        "maintenance.scheduled",
        "maintenance.started",
        "maintenance.completed",
        "maintenance.cancelled",
        "maintenance.follow_up_created",
        "maintenance.parts_ordered",
    ],
    "user": [
        "user.login",
        "user.logout",
        "user.password_changed",
        "user.role_changed",
        "user.profile_updated",
    ],
    "system": [
        "system.backup_created",
        "system.report_generated",
        "system.notification_sent",
        "system.sync_completed",
        "system.error_logged",
    ],
}

SYSTEM_LOG_COUNT = 50
# Audit actor for system entries when the run has no admin user
SYSTEM_ACTOR_ID = "system"
