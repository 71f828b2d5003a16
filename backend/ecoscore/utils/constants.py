"""
Constants and lookup tables for the Eco-Score recipe research backend.

This module centralizes the static tables used across the application:
category keywords and modifiers, score bands, ingredient impact data for
explanations, known ingredient substitutions and the built-in fixture
catalog used when the primary catalog cannot be loaded.

Keyword tables carry both Hungarian and English terms because the study
catalog is Hungarian.
"""

from typing import Dict, List

from ecoscore.models.recipe import Category


# ==============================================================================
# CATEGORIES
# ==============================================================================

# Sustainability bonus/penalty per category
CATEGORY_MODIFIERS: Dict[Category, float] = {
    Category.SALAD: 5.0,       # mostly vegetables
    Category.SOUP: 3.0,        # little processing
    Category.DRINK: 2.0,       # usually fruit based
    Category.BREAKFAST: 1.0,
    Category.SIDE: 0.0,
    Category.OTHER: 0.0,
    Category.MAIN: -2.0,       # often meat
    Category.DESSERT: -3.0     # sugar, processing
}


# Localized and English labels accepted in raw catalog records
CATEGORY_ALIASES: Dict[str, Category] = {
    "saláta": Category.SALAD,
    "leves": Category.SOUP,
    "főétel": Category.MAIN,
    "desszert": Category.DESSERT,
    "ital": Category.DRINK,
    "reggeli": Category.BREAKFAST,
    "köret": Category.SIDE,
    "egyéb": Category.OTHER,
    **{category.value: category for category in Category},
}


# Keyword table for category classification. Order matters for ties.
CATEGORY_KEYWORDS: Dict[Category, List[str]] = {
    Category.SOUP: [
        "leves", "húslé", "alaplé", "gulyás", "soup", "broth", "chowder"
    ],
    Category.SALAD: [
        "saláta", "salad", "uborka", "lettuce", "vegyes", "rukkola", "coleslaw"
    ],
    Category.MAIN: [
        "csirke", "chicken", "marhahús", "marha", "beef", "hal", "fish",
        "sertéshús", "sertés", "pork", "tészta", "pasta", "rizs", "rice",
        "steak", "schnitzel", "pörkölt", "rakott", "stew"
    ],
    Category.DESSERT: [
        "cukor", "sugar", "méz", "honey", "csokoládé", "chocolate",
        "sütemény", "cake", "torta", "keksz", "piskóta"
    ],
    Category.DRINK: [
        "smoothie", "juice", "tea", "coffee", "ital", "shake", "koktél",
        "limonádé"
    ],
    Category.BREAKFAST: [
        "tojás", "egg", "omlett", "pancake", "müzli", "cereal", "zabkása",
        "pirítós", "porridge", "granola"
    ],
    Category.SIDE: [
        "burgonya", "potato", "sárgarépa", "carrot", "brokkoli", "spárga",
        "zöldség köret", "püré"
    ]
}


CATEGORY_ICONS: Dict[Category, str] = {
    Category.SALAD: "🥗",
    Category.SOUP: "🍲",
    Category.MAIN: "🍽️",
    Category.DESSERT: "🍰",
    Category.DRINK: "🥤",
    Category.BREAKFAST: "🍳",
    Category.SIDE: "🥔",
    Category.OTHER: "🍴"
}


# ==============================================================================
# SCORE BANDS
# ==============================================================================

# Sustainability index bands (highest qualifying minimum wins)
ECO_SCORE_BANDS: List[Dict] = [
    {"min": 75.0, "label": "Excellent sustainable choice", "icon": "🌟", "color": "#2E7D32"},
    {"min": 60.0, "label": "Good sustainable choice", "icon": "✅", "color": "#7CB342"},
    {"min": 40.0, "label": "Moderately sustainable choice", "icon": "⚖️", "color": "#FFA000"},
    {"min": 0.0, "label": "Less sustainable choice", "icon": "⚠️", "color": "#D32F2F"}
]


# Environmental impact bands (lowest qualifying maximum wins)
ENV_SCORE_BANDS: List[Dict] = [
    {"max": 20.0, "label": "Very environmentally friendly", "color": "#4CAF50"},
    {"max": 40.0, "label": "Environmentally friendly", "color": "#8BC34A"},
    {"max": 60.0, "label": "Moderate environmental impact", "color": "#FF9800"},
    {"max": 100.0, "label": "High environmental impact", "color": "#F44336"}
]


# ==============================================================================
# EXPERIMENT
# ==============================================================================

TEST_GROUPS: Dict[str, str] = {
    "A": "Control group",
    "B": "With sustainability scores",
    "C": "With sustainability scores and XAI explanations"
}

# Choice analytics
TREND_WINDOW: int = 3
IMPROVEMENT_TREND_SHARE: float = 0.2  # first/last share of choices compared
BASELINE_MEAL_CO2_KG: float = 2.5
NEUTRAL_SUSTAINABILITY: float = 50.0  # index 100 saves half the baseline
QUICK_DECISION_SECONDS: float = 10.0
SLOW_DECISION_SECONDS: float = 30.0
AWARENESS_HIGH_THRESHOLD: float = 70.0
AWARENESS_MEDIUM_THRESHOLD: float = 55.0
ENGAGEMENT_HIGH_CHOICES: int = 10
ENGAGEMENT_MEDIUM_CHOICES: int = 3


# ==============================================================================
# EXPLANATION TABLES
# ==============================================================================

# Per-ingredient sustainability lookup (keyword -> impact data).
# Keywords are matched as substrings, longest first.
INGREDIENT_IMPACTS: Dict[str, Dict] = {
    # Red meat
    "marhahús": {"label": "beef", "impact": "negative", "importance": 0.9,
                 "explanation": "Beef production has the largest greenhouse gas, land and water footprint of common foods."},
    "marha": {"label": "beef", "impact": "negative", "importance": 0.9,
              "explanation": "Beef production has the largest greenhouse gas, land and water footprint of common foods."},
    "beef": {"label": "beef", "impact": "negative", "importance": 0.9,
             "explanation": "Beef production has the largest greenhouse gas, land and water footprint of common foods."},
    "bárány": {"label": "lamb", "impact": "negative", "importance": 0.85,
               "explanation": "Lamb is a ruminant meat with emissions close to beef."},
    "lamb": {"label": "lamb", "impact": "negative", "importance": 0.85,
             "explanation": "Lamb is a ruminant meat with emissions close to beef."},
    "sertés": {"label": "pork", "impact": "negative", "importance": 0.6,
               "explanation": "Pork needs far more feed and land than plant proteins."},
    "pork": {"label": "pork", "impact": "negative", "importance": 0.6,
             "explanation": "Pork needs far more feed and land than plant proteins."},
    "kolbász": {"label": "sausage", "impact": "negative", "importance": 0.6,
                "explanation": "Sausage is a processed meat product with a high footprint."},
    "sausage": {"label": "sausage", "impact": "negative", "importance": 0.6,
                "explanation": "Sausage is a processed meat product with a high footprint."},
    "szalonna": {"label": "bacon", "impact": "negative", "importance": 0.55,
                 "explanation": "Bacon is processed pork with a high footprint."},
    "bacon": {"label": "bacon", "impact": "negative", "importance": 0.55,
              "explanation": "Bacon is processed pork with a high footprint."},

    # Poultry, fish, eggs
    "csirke": {"label": "chicken", "impact": "negative", "importance": 0.35,
               "explanation": "Chicken has a lower footprint than red meat but higher than plant proteins."},
    "chicken": {"label": "chicken", "impact": "negative", "importance": 0.35,
                "explanation": "Chicken has a lower footprint than red meat but higher than plant proteins."},
    "pulyka": {"label": "turkey", "impact": "negative", "importance": 0.35,
               "explanation": "Turkey has a lower footprint than red meat but higher than plant proteins."},
    "turkey": {"label": "turkey", "impact": "negative", "importance": 0.35,
               "explanation": "Turkey has a lower footprint than red meat but higher than plant proteins."},
    "hal": {"label": "fish", "impact": "neutral", "importance": 0.3,
            "explanation": "The footprint of fish depends strongly on species and fishing method."},
    "fish": {"label": "fish", "impact": "neutral", "importance": 0.3,
             "explanation": "The footprint of fish depends strongly on species and fishing method."},
    "tojás": {"label": "egg", "impact": "neutral", "importance": 0.25,
              "explanation": "Eggs are a moderate-impact animal protein."},
    "egg": {"label": "egg", "impact": "neutral", "importance": 0.25,
            "explanation": "Eggs are a moderate-impact animal protein."},

    # Dairy
    "sajt": {"label": "cheese", "impact": "negative", "importance": 0.5,
             "explanation": "Cheese concentrates the footprint of a lot of milk into a small amount of food."},
    "cheese": {"label": "cheese", "impact": "negative", "importance": 0.5,
               "explanation": "Cheese concentrates the footprint of a lot of milk into a small amount of food."},
    "vaj": {"label": "butter", "impact": "negative", "importance": 0.45,
            "explanation": "Butter is an animal fat with a high footprint per kilogram."},
    "butter": {"label": "butter", "impact": "negative", "importance": 0.45,
               "explanation": "Butter is an animal fat with a high footprint per kilogram."},
    "tejszín": {"label": "cream", "impact": "negative", "importance": 0.4,
                "explanation": "Cream is a high-fat dairy product with a notable footprint."},
    "cream": {"label": "cream", "impact": "negative", "importance": 0.4,
              "explanation": "Cream is a high-fat dairy product with a notable footprint."},
    "tejföl": {"label": "sour cream", "impact": "negative", "importance": 0.35,
               "explanation": "Sour cream is a dairy product with a moderate footprint."},
    "tej": {"label": "milk", "impact": "negative", "importance": 0.3,
            "explanation": "Dairy milk has a higher footprint than plant-based drinks."},
    "milk": {"label": "milk", "impact": "negative", "importance": 0.3,
             "explanation": "Dairy milk has a higher footprint than plant-based drinks."},

    # Grains
    "rizs": {"label": "rice", "impact": "neutral", "importance": 0.2,
             "explanation": "Paddy rice releases methane but is still far below animal products."},
    "rice": {"label": "rice", "impact": "neutral", "importance": 0.2,
             "explanation": "Paddy rice releases methane but is still far below animal products."},
    "zab": {"label": "oats", "impact": "positive", "importance": 0.3,
            "explanation": "Oats are a low-impact whole grain."},
    "oat": {"label": "oats", "impact": "positive", "importance": 0.3,
            "explanation": "Oats are a low-impact whole grain."},

    # Legumes
    "lencse": {"label": "lentils", "impact": "positive", "importance": 0.6,
               "explanation": "Lentils are a protein source with a very small footprint that also enrich the soil."},
    "lentil": {"label": "lentils", "impact": "positive", "importance": 0.6,
               "explanation": "Lentils are a protein source with a very small footprint that also enrich the soil."},
    "csicseriborsó": {"label": "chickpeas", "impact": "positive", "importance": 0.55,
                      "explanation": "Chickpeas provide protein at a fraction of the footprint of meat."},
    "chickpea": {"label": "chickpeas", "impact": "positive", "importance": 0.55,
                 "explanation": "Chickpeas provide protein at a fraction of the footprint of meat."},
    "bab": {"label": "beans", "impact": "positive", "importance": 0.55,
            "explanation": "Beans provide protein at a fraction of the footprint of meat."},
    "bean": {"label": "beans", "impact": "positive", "importance": 0.55,
             "explanation": "Beans provide protein at a fraction of the footprint of meat."},
    "borsó": {"label": "peas", "impact": "positive", "importance": 0.4,
              "explanation": "Peas are a low-impact legume."},
    "pea": {"label": "peas", "impact": "positive", "importance": 0.4,
            "explanation": "Peas are a low-impact legume."},
    "tofu": {"label": "tofu", "impact": "positive", "importance": 0.5,
             "explanation": "Tofu is a plant protein with a small footprint."},

    # Vegetables and fruit
    "zöldség": {"label": "vegetables", "impact": "positive", "importance": 0.35,
                "explanation": "Vegetables have a small footprint per serving."},
    "vegetable": {"label": "vegetables", "impact": "positive", "importance": 0.35,
                  "explanation": "Vegetables have a small footprint per serving."},
    "káposzta": {"label": "cabbage", "impact": "positive", "importance": 0.3,
                 "explanation": "Cabbage is a hardy, low-impact vegetable."},
    "cabbage": {"label": "cabbage", "impact": "positive", "importance": 0.3,
                "explanation": "Cabbage is a hardy, low-impact vegetable."},
    "burgonya": {"label": "potato", "impact": "positive", "importance": 0.3,
                 "explanation": "Potatoes are among the lowest-impact staple foods."},
    "krumpli": {"label": "potato", "impact": "positive", "importance": 0.3,
                "explanation": "Potatoes are among the lowest-impact staple foods."},
    "potato": {"label": "potato", "impact": "positive", "importance": 0.3,
               "explanation": "Potatoes are among the lowest-impact staple foods."},
    "gyümölcs": {"label": "fruit", "impact": "positive", "importance": 0.3,
                 "explanation": "Fruit has a small footprint when not air-freighted."},
    "fruit": {"label": "fruit", "impact": "positive", "importance": 0.3,
              "explanation": "Fruit has a small footprint when not air-freighted."},
    "paradicsom": {"label": "tomato", "impact": "positive", "importance": 0.25,
                   "explanation": "Tomatoes are a low-impact vegetable in season."},
    "tomato": {"label": "tomato", "impact": "positive", "importance": 0.25,
               "explanation": "Tomatoes are a low-impact vegetable in season."},
    "sárgarépa": {"label": "carrot", "impact": "positive", "importance": 0.25,
                  "explanation": "Carrots are a low-impact root vegetable."},
    "répa": {"label": "carrot", "impact": "positive", "importance": 0.25,
             "explanation": "Carrots are a low-impact root vegetable."},
    "carrot": {"label": "carrot", "impact": "positive", "importance": 0.25,
               "explanation": "Carrots are a low-impact root vegetable."},
    "hagyma": {"label": "onion", "impact": "positive", "importance": 0.2,
               "explanation": "Onions are a low-impact vegetable."},
    "onion": {"label": "onion", "impact": "positive", "importance": 0.2,
              "explanation": "Onions are a low-impact vegetable."}
}


# Category level impact statements
CATEGORY_IMPACTS: Dict[Category, Dict] = {
    Category.SALAD: {"impact": "positive", "importance": 0.35,
                     "explanation": "Salads are usually made mostly of plant ingredients."},
    Category.SOUP: {"impact": "positive", "importance": 0.3,
                    "explanation": "Soups use their ingredients efficiently and are largely water."},
    Category.MAIN: {"impact": "negative", "importance": 0.25,
                    "explanation": "Main courses often contain meat or other animal products."},
    Category.DESSERT: {"impact": "negative", "importance": 0.4,
                       "explanation": "Desserts are often highly processed and high in sugar."}
}


# Score thresholds used by the explanation rules
NUTRITION_HIGH_THRESHOLD: float = 70.0
NUTRITION_LOW_THRESHOLD: float = 40.0
ENV_LOW_IMPACT_THRESHOLD: float = 40.0
ENV_HIGH_IMPACT_THRESHOLD: float = 60.0

# Rough environmental equivalents per missing sustainability point
CO2_KG_PER_POINT: float = 0.015
WATER_LITERS_PER_POINT: float = 10.0
LAND_M2_PER_POINT: float = 0.08


# Composition heuristics
MEAT_KEYWORDS: List[str] = [
    "csirke", "marha", "sertés", "bárány", "pulyka", "hal", "hús", "kolbász",
    "szalonna", "chicken", "beef", "pork", "lamb", "turkey", "fish", "meat",
    "sausage", "bacon"
]

VEGETABLE_KEYWORDS: List[str] = [
    "zöldség", "paradicsom", "hagyma", "paprika", "répa", "káposzta",
    "uborka", "saláta", "brokkoli", "spenót", "cukkini", "padlizsán",
    "burgonya", "krumpli", "gomba", "fokhagyma", "tök", "vegetable", "tomato",
    "onion", "pepper", "carrot", "cabbage", "cucumber", "lettuce", "broccoli",
    "spinach", "zucchini", "potato", "mushroom", "garlic"
]

PROCESSED_KEYWORDS: List[str] = [
    "konzerv", "feldolgozott", "instant", "előkészített", "canned", "processed"
]

SEASONAL_KEYWORDS: List[str] = ["szezonális", "helyi", "friss", "seasonal", "local", "fresh"]

HEALTHY_KEYWORDS: List[str] = [
    "zöldség", "gyümölcs", "teljes kiőrlésű", "hal", "hüvelyes", "lencse",
    "vegetable", "fruit", "whole grain", "legume", "lentil"
]

SUGAR_KEYWORDS: List[str] = ["cukor", "méz", "szirup", "sugar", "honey", "syrup"]

PROTEIN_KEYWORDS: List[str] = [
    "hús", "hal", "tojás", "tej", "sajt", "bab", "lencse", "tofu", "meat",
    "fish", "egg", "milk", "cheese", "bean", "lentil"
]

FAT_KEYWORDS: List[str] = [
    "olaj", "vaj", "zsír", "szalonna", "tejszín", "oil", "butter", "lard",
    "bacon", "cream"
]

# Impact labels of animal products that get a plant-based suggestion
PLANT_BASED_SUGGESTIONS: Dict[str, str] = {
    "beef": "Replace the beef with legumes such as lentils or beans to cut the footprint of this dish sharply.",
    "lamb": "Replace the lamb with legumes or mushrooms for a much smaller footprint.",
    "pork": "Swap the pork for beans, chickpeas or tofu.",
    "sausage": "Use a plant-based sausage or smoked tofu instead of sausage.",
    "bacon": "Use smoked paprika or smoked tofu instead of bacon for the smoky flavour.",
    "chicken": "Try chickpeas or tofu instead of chicken.",
    "turkey": "Try chickpeas or tofu instead of turkey.",
    "cheese": "Use less cheese or a plant-based alternative.",
    "butter": "Cook with olive or sunflower oil instead of butter.",
    "cream": "Use oat or coconut cream instead of dairy cream.",
    "sour cream": "Use a plant-based yoghurt instead of sour cream.",
    "milk": "Use a plant-based drink such as oat milk instead of dairy milk."
}

DEFAULT_SUGGESTION: str = (
    "This recipe is already built on low-impact ingredients; keep choosing "
    "seasonal, plant-based dishes like this one."
)


# Known ingredient substitutions (keyword -> replacement)
KNOWN_SUBSTITUTIONS: Dict[str, Dict] = {
    "marhahús": {"replace": "plant-based meat substitute", "improvement_percent": 75,
                 "explanation": "Plant-based meat substitutes have a fraction of the environmental impact of beef."},
    "beef": {"replace": "plant-based meat substitute", "improvement_percent": 75,
             "explanation": "Plant-based meat substitutes have a fraction of the environmental impact of beef."},
    "sertéshús": {"replace": "chicken", "improvement_percent": 25,
                  "explanation": "Producing chicken emits less greenhouse gas than producing pork."},
    "pork": {"replace": "chicken", "improvement_percent": 25,
             "explanation": "Producing chicken emits less greenhouse gas than producing pork."},
    "vaj": {"replace": "olive oil", "improvement_percent": 30,
            "explanation": "Vegetable oils generally have a smaller impact than animal fats."},
    "butter": {"replace": "olive oil", "improvement_percent": 30,
               "explanation": "Vegetable oils generally have a smaller impact than animal fats."},
    "tejszín": {"replace": "coconut cream", "improvement_percent": 35,
                "explanation": "Plant-based cream alternatives have a smaller environmental impact."},
    "cream": {"replace": "coconut cream", "improvement_percent": 35,
              "explanation": "Plant-based cream alternatives have a smaller environmental impact."},
    "tej": {"replace": "plant-based milk", "improvement_percent": 40,
            "explanation": "Oat, almond and soy drinks have a smaller footprint than dairy milk."},
    "milk": {"replace": "plant-based milk", "improvement_percent": 40,
             "explanation": "Oat, almond and soy drinks have a smaller footprint than dairy milk."}
}


# ==============================================================================
# FIXTURE CATALOG
# ==============================================================================

# Used when the primary catalog source is unreachable
FALLBACK_RECIPES: List[Dict] = [
    {
        "recipeid": 1,
        "name": "Egyszerű paradicsomleves",
        "ingredients": "paradicsom, hagyma, só, bors, fokhagyma",
        "category": "leves",
        "env_score": 25.5,
        "nutri_score": 78.2
    },
    {
        "recipeid": 2,
        "name": "Csirkemell rizibizivel",
        "ingredients": "csirkemell, rizs, borsó, sárgarépa, só, bors",
        "category": "főétel",
        "env_score": 58.3,
        "nutri_score": 65.1
    },
    {
        "recipeid": 3,
        "name": "Uborkasaláta",
        "ingredients": "uborka, tejföl, kapor, só, bors, cukor",
        "category": "saláta",
        "env_score": 15.2,
        "nutri_score": 72.8
    },
    {
        "recipeid": 4,
        "name": "Lencsefőzelék",
        "ingredients": 'c("lencse", "hagyma", "fokhagyma", "babérlevél", "liszt", "olaj")',
        "category": "köret",
        "env_score": 12.4,
        "nutri_score": 81.0
    },
    {
        "recipeid": 5,
        "name": "Marhapörkölt",
        "ingredients": "marhahús, hagyma, paprika, sertészsír, só",
        "category": "főétel",
        "env_score": 82.7,
        "nutri_score": 41.5
    },
    {
        "recipeid": 6,
        "name": "Csokoládés palacsinta",
        "ingredients": "liszt, tojás, tej, cukor, csokoládé, olaj",
        "category": "desszert",
        "env_score": 44.0,
        "nutri_score": 33.6
    }
]
