"""Standard colour palette offered in the admin product editor"""

STANDARD_COLORS = [
    {'name': 'Red', 'color': '#FF0000'},
    {'name': 'Dark Red', 'color': '#8B0000'},
    {'name': 'Maroon', 'color': '#800000'},
    {'name': 'Crimson', 'color': '#DC143C'},
    {'name': 'Burgundy', 'color': '#800020'},
    {'name': 'Rose', 'color': '#FF007F'},
    {'name': 'Pink', 'color': '#FFC0CB'},
    {'name': 'Hot Pink', 'color': '#FF69B4'},
    {'name': 'Deep Pink', 'color': '#FF1493'},
    {'name': 'Magenta', 'color': '#FF00FF'},
    {'name': 'Fuchsia', 'color': '#C154C1'},
    {'name': 'Rani Pink', 'color': '#E0115F'},
    {'name': 'Peach', 'color': '#FFE5B4'},
    {'name': 'Coral', 'color': '#FF7F50'},
    {'name': 'Salmon', 'color': '#FA8072'},
    {'name': 'Orange', 'color': '#FFA500'},
    {'name': 'Dark Orange', 'color': '#FF8C00'},
    {'name': 'Rust', 'color': '#B7410E'},
    {'name': 'Saffron', 'color': '#F4C430'},
    {'name': 'Mustard', 'color': '#FFDB58'},
    {'name': 'Yellow', 'color': '#FFFF00'},
    {'name': 'Lemon', 'color': '#FFF700'},
    {'name': 'Gold', 'color': '#FFD700'},
    {'name': 'Golden Brown', 'color': '#996515'},
    {'name': 'Champagne', 'color': '#F7E7CE'},
    {'name': 'Cream', 'color': '#FFFDD0'},
    {'name': 'Ivory', 'color': '#FFFFF0'},
    {'name': 'Beige', 'color': '#F5F5DC'},
    {'name': 'Off White', 'color': '#FAF9F6'},
    {'name': 'White', 'color': '#FFFFFF'},
    {'name': 'Silver', 'color': '#C0C0C0'},
    {'name': 'Light Gray', 'color': '#D3D3D3'},
    {'name': 'Gray', 'color': '#808080'},
    {'name': 'Charcoal', 'color': '#36454F'},
    {'name': 'Black', 'color': '#000000'},
    {'name': 'Lime', 'color': '#00FF00'},
    {'name': 'Light Green', 'color': '#90EE90'},
    {'name': 'Mint', 'color': '#98FF98'},
    {'name': 'Pista Green', 'color': '#93C572'},
    {'name': 'Green', 'color': '#008000'},
    {'name': 'Parrot Green', 'color': '#12AD2B'},
    {'name': 'Emerald', 'color': '#50C878'},
    {'name': 'Bottle Green', 'color': '#006A4E'},
    {'name': 'Dark Green', 'color': '#006400'},
    {'name': 'Olive', 'color': '#808000'},
    {'name': 'Mehendi Green', 'color': '#7C8C3C'},
    {'name': 'Teal', 'color': '#008080'},
    {'name': 'Turquoise', 'color': '#40E0D0'},
    {'name': 'Aqua', 'color': '#00FFFF'},
    {'name': 'Sky Blue', 'color': '#87CEEB'},
    {'name': 'Light Blue', 'color': '#ADD8E6'},
    {'name': 'Powder Blue', 'color': '#B0E0E6'},
    {'name': 'Peacock Blue', 'color': '#005F69'},
    {'name': 'Blue', 'color': '#0000FF'},
    {'name': 'Royal Blue', 'color': '#4169E1'},
    {'name': 'Cobalt', 'color': '#0047AB'},
    {'name': 'Navy', 'color': '#000080'},
    {'name': 'Midnight Blue', 'color': '#191970'},
    {'name': 'Indigo', 'color': '#4B0082'},
    {'name': 'Lavender', 'color': '#E6E6FA'},
    {'name': 'Lilac', 'color': '#C8A2C8'},
    {'name': 'Mauve', 'color': '#E0B0FF'},
    {'name': 'Violet', 'color': '#8F00FF'},
    {'name': 'Purple', 'color': '#800080'},
    {'name': 'Plum', 'color': '#8E4585'},
    {'name': 'Wine', 'color': '#722F37'},
    {'name': 'Onion Pink', 'color': '#C48189'},
    {'name': 'Brown', 'color': '#A52A2A'},
    {'name': 'Chocolate', 'color': '#7B3F00'},
    {'name': 'Coffee', 'color': '#6F4E37'},
    {'name': 'Tan', 'color': '#D2B48C'},
    {'name': 'Khaki', 'color': '#C3B091'},
    {'name': 'Copper', 'color': '#B87333'},
    {'name': 'Bronze', 'color': '#CD7F32'},
    {'name': 'Multicolor', 'color': 'linear-gradient(45deg, #FF0000, #FFA500, #FFFF00, #008000, #0000FF, #800080)'},
]
