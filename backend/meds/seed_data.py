"""
MEDS Backend — Reference Seed Data
====================================

What:  Default accounts, clinic settings and the reference lists a fresh
       installation starts with.
Who:   Inserted by the `003_seed_reference_data` migration; the settings
       defaults are also used when settings are created through the API
       without values.

Every default account uses DEFAULT_PASSWORD. Change them before the clinic
goes live; `meds serve` prints a reminder at start-up.

Natural keys used to keep seeding idempotent:
    users              email
    chief_complaints   name
    diagnosis          name
    categories         name
    questions          question_text (within a category)
    inventory          (drug_name, unit_size, dose)
"""

DEFAULT_PASSWORD = "password123"

# (email, username, name, role, is_superuser)
DEFAULT_USERS = [
    ("user@example.com", "superuser", "Dashboard Admin", "admin", True),
    ("admin@example.com", "admin", "Clinic Admin", "admin", False),
    ("provider@example.com", "provider", "Provider 1", "provider", False),
    ("provider2@example.com", "provider2", "Provider 2", "provider", False),
    ("provider3@example.com", "provider3", "Provider 3", "provider", False),
    ("provider4@example.com", "provider4", "Provider 4", "provider", False),
    ("provider5@example.com", "provider5", "Provider 5", "provider", False),
    ("provider6@example.com", "provider6", "Provider 6", "provider", False),
    ("pharmacyuser@example.com", "pharmacyuser", "Pharmacy 1", "pharmacy", False),
    ("pharmacyuser2@example.com", "pharmacyuser2", "Pharmacy 2", "pharmacy", False),
    ("pharmacyuser3@example.com", "pharmacyuser3", "Pharmacy 3", "pharmacy", False),
    ("pharmacyuser4@example.com", "pharmacyuser4", "Pharmacy 4", "pharmacy", False),
]

SETTINGS_UPDATED_BY = "admin@example.com"

DEFAULT_UNIT_DISPLAY = {
    "height": "cm",
    "weight": "kg",
    "temperature": "F",
}

DEFAULT_DISPLAY_PREFERENCES = {
    "show_priority_dropdown": False,
    "show_care_team_assignment": False,
    "care_team_count": 6,
    "show_gyn_team": False,
    "show_optometry_team": False,
    # providers and pharmacy share all permissions
    "unified_roles": False,
    # admins may edit every encounter field regardless of mode
    "override_field_restrictions": False,
    # every role may edit every encounter field regardless of mode
    "override_field_restrictions_all_roles": False,
}

OTHER_OPTION = "OTHER (Custom Text Input)"

CHIEF_COMPLAINTS = [
    "ABDOMINAL PAIN",
    "BACK PAIN",
    "CHEST PAIN",
    "COUGH",
    "DIARRHEA",
    "DIZZINESS",
    "EARACHE",
    "FATIGUE",
    "FEVER/CHILLS/SWEATS",
    "HEADACHE",
    "JOINT PAIN",
    "NAUSEA",
    "NUMBNESS",
    "PALPITATIONS",
    "RASH",
    "SHORTNESS OF BREATH",
    "SORE THROAT",
    "VISION PROBLEMS",
    OTHER_OPTION,
]

DIAGNOSES = [
    "ACUTE SINUSITIS",
    "ACUTE UPPER RESPIRATORY INFECTION",
    "ASTHMA",
    "BRONCHITIS",
    "CELLULITIS",
    "DEPRESSION",
    "GASTROESOPHAGEAL REFLUX DISEASE (GERD)",
    "GENERALIZED ANXIETY DISORDER",
    "HYPERLIPIDEMIA",
    "HYPERTENSION",
    "INFLUENZA",
    "IRON-DEFICIENCY ANEMIA",
    "MIGRAINE",
    "PNEUMONIA",
    "TYPE 2 DIABETES",
    "URINARY TRACT INFECTION",
    "WELL CHECK",
    OTHER_OPTION,
]

RATING_OPTIONS = ["Excellent", "Good", "Fair", "Poor"]

# Each category: name, type, order and its questions. A question's
# `depends_on` names the question_text of a checkbox question in the same
# category.
QUESTION_CATEGORIES = [
    {
        "name": "Standard Items",
        "type": "counter",
        "order": 1,
        "questions": [
            {"question_text": "Goodie Bag", "input_type": "checkbox", "order": 1},
            {"question_text": "Fluoride", "input_type": "checkbox", "order": 2},
            {"question_text": "Sunglasses", "input_type": "checkbox", "order": 3},
            {"question_text": "Reading Glasses", "input_type": "checkbox", "order": 4},
            {"question_text": "Hat", "input_type": "checkbox", "order": 5},
            {"question_text": "Information Packet", "input_type": "checkbox", "order": 6},
            {"question_text": "Water Bottle", "input_type": "checkbox", "order": 7},
        ],
    },
    {
        "name": "Patient Satisfaction",
        "type": "survey",
        "order": 2,
        "questions": [
            {
                "question_text": "How would you rate your overall experience?",
                "input_type": "select",
                "options": RATING_OPTIONS,
                "order": 1,
            },
            {
                "question_text": "Would you recommend our clinic to others?",
                "input_type": "select",
                "options": ["Yes", "No", "Maybe"],
                "order": 2,
            },
            {"question_text": "What could we improve?", "input_type": "text", "order": 3},
        ],
    },
    {
        "name": "Treatment Feedback",
        "type": "survey",
        "order": 3,
        "questions": [
            {
                "question_text": "Did the provider explain your treatment clearly?",
                "input_type": "select",
                "options": ["Yes", "No", "Somewhat"],
                "order": 1,
            },
            {
                "question_text": "Do you have any questions about your medications?",
                "input_type": "checkbox",
                "order": 2,
            },
            {
                "question_text": "What questions do you have?",
                "input_type": "text",
                "order": 3,
                "depends_on": "Do you have any questions about your medications?",
            },
        ],
    },
    {
        "name": "Medication Experience",
        "type": "survey",
        "order": 4,
        "questions": [
            {
                "question_text": "Have you had any previous reactions to medications?",
                "input_type": "checkbox",
                "order": 1,
            },
            {
                "question_text": "Please describe any previous reactions:",
                "input_type": "text",
                "order": 2,
                "depends_on": "Have you had any previous reactions to medications?",
            },
            {
                "question_text": "How do you prefer to receive medication instructions?",
                "input_type": "select",
                "options": ["Written", "Verbal", "Both"],
                "order": 3,
            },
        ],
    },
]

# (drug_name, drug_category, stock, fixed_quantity, unit_size, dose)
# stock None = untracked
STARTER_INVENTORY = [
    ("Cetirizine", "Allergy", 5000, 1, "Tablet", "10 mg"),
    ("Cetirizine", "Allergy", 30, 1, "Bottle", "1 mg/mL"),
    ("Loratadine", "Allergy", 8200, 1, "Tablet", "10 mg"),
    ("Fluticasone Nasal Spray", "Allergy", 25, 1, "Bottle", "50 mcg/16 g"),
    ("Salbutamol", "Asthma/COPD", 180, 1, "Doses", "200 doses"),
    ("Acetaminophen", "Pain", 6000, 1, "Tablet", "325 mg"),
    ("Acetaminophen", "Pain", 50, 1, "Bottle", "160 mg/5 mL"),
    ("Ibuprofen", "Pain", 30, 1, "Bottle", "100 mg/5 mL"),
    ("Amoxicillin", "Antibiotics (po)", 18, 1, "Bottle", "400 mg/5 mL"),
    ("Adult MVI w/out iron", "Vitamins", 78000, 1, "Tablet", ""),
    ("Calcium with vitamin D", "Vitamins", 120, 1, "Tablet", "600mg/5mcg"),
    ("Prenatals", "Emergency", 1400, 1, "Tablet", ""),
    ("Ceftriaxone sodium", "Emergency", 10, 1, "Vials", "500 mg/mL"),
    ("0.9 NS", "Emergency", None, 1, "Bottle", "1000 mL"),
    ("Benadryl", "Emergency", 3000, 1, "Tablet", "50 mg"),
    ("Clonidine", "Emergency", 1000, 1, "Tablet", "0.1 mg"),
]
