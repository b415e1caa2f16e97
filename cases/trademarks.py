"""
Reference data for the trademark search wizard: the 45 Nice classes,
category options and the helpers that tidy up a client's class selections.
"""

CATEGORY_OPTIONS = ('Goods and services', 'Goods', 'Services')

NICE_CLASSES = [
    ('1', 'Chemicals for industrial, scientific or agricultural use'),
    ('2', 'Paints, colorants and anti-corrosion preparations'),
    ('3', 'Cleaning preparations, cosmetics, perfumery, dentifrices, soaps'),
    ('4', 'Industrial oils, lubricants, fuels, illuminants'),
    ('5', 'Pharmaceuticals, medical preparations, disinfectants'),
    ('6', 'Common metals and metal goods'),
    ('7', 'Machines, motors and machine tools'),
    ('8', 'Hand tools, cutlery and implements'),
    ('9', 'Electrical and electronic apparatus, data processing equipment, measuring instruments'),
    ('10', 'Medical apparatus and supplies'),
    ('11', 'Lighting, heating, cooling, water supply, ventilation and drying apparatus'),
    ('12', 'Vehicles and apparatus for locomotion'),
    ('13', 'Firearms, fireworks and explosives'),
    ('14', 'Precious metals, jewellery and watches'),
    ('15', 'Musical instruments'),
    ('16', 'Paper, paper goods and office requisites'),
    ('17', 'Plastics, rubber, insulating and packing materials'),
    ('18', 'Leather goods, bags, travel goods and saddlery'),
    ('19', 'Non-metallic building materials'),
    ('20', 'Furniture, bedding, ornaments and plastic goods'),
    ('21', 'Kitchen utensils, household containers, glassware and porcelain'),
    ('22', 'Ropes, tents, canvas and raw textile fibres'),
    ('23', 'Yarns and threads for textile use'),
    ('24', 'Textiles, textile goods, covers and bedding'),
    ('25', 'Clothing, footwear and headwear'),
    ('26', 'Haberdashery, decorations, buttons and fasteners'),
    ('27', 'Carpets, rugs, mats and wall hangings'),
    ('28', 'Toys, sporting goods and games'),
    ('29', 'Animal-based foods, processed meat, seafood and dairy products'),
    ('30', 'Processed plant-based foods, confectionery and condiments'),
    ('31', 'Fresh agricultural products, live animals and animal feed'),
    ('32', 'Non-alcoholic beverages, fruit juices and water'),
    ('33', 'Alcoholic beverages except beers'),
    ('34', 'Tobacco, smokers\' articles and matches'),
    ('35', 'Advertising, business management and administration, retail and wholesale services'),
    ('36', 'Financial, insurance and real estate services'),
    ('37', 'Construction, repair, maintenance and installation services'),
    ('38', 'Telecommunications, internet and broadcasting services'),
    ('39', 'Transport, logistics and travel arrangement'),
    ('40', 'Treatment and processing of materials'),
    ('41', 'Education, entertainment, cultural and sporting activities, training'),
    ('42', 'Scientific and technological services, design, IT and software development, research'),
    ('43', 'Restaurants, accommodation and catering'),
    ('44', 'Medical, beauty, hygiene, veterinary, agricultural and horticultural services'),
    ('45', 'Legal services, security, matchmaking, fortune telling and personal services'),
]

NICE_CLASS_CODES = frozenset(code for code, _ in NICE_CLASSES)

# Query-string spelling of Case.CONSULTATION_ROUTES used by the wizard pages
UI_CONSULTATION_ROUTES = {
    'ai_self_service': 'AI_SELF_SERVICE',
    'attorney_consultation': 'ATTORNEY_CONSULTATION',
}


def normalize_consultation_route(value):
    """Maps 'attorney_consultation' -> 'ATTORNEY_CONSULTATION'; unknown values give None."""
    if value is None:
        return None
    return UI_CONSULTATION_ROUTES.get(value.strip().lower())


def sanitize_class_details(details):
    """Drops blank entries from a class's designated goods/services."""
    return [detail for detail in details if detail.strip()]


def upsert_class_selection(selections, class_code, details):
    """Returns a new list with class_code's details replaced or appended."""
    updated = list(selections)
    for index, selection in enumerate(updated):
        if selection['classCode'] == class_code:
            updated[index] = {'classCode': class_code, 'details': details}
            return updated
    updated.append({'classCode': class_code, 'details': details})
    return updated


def normalize_class_selections(selections):
    """
    Cleans a submitted classSelections list: one entry per class code (the
    last one wins) and no blank details.
    """
    normalized = []
    for selection in selections:
        normalized = upsert_class_selection(
            normalized,
            str(selection['classCode']),
            sanitize_class_details(selection.get('details') or []),
        )
    return normalized
