CLASSIFY_PROMPT = """
You label customer feedback left for a small business (cafe, restaurant, shop) after scanning a QR code.
Comments are usually in Indonesian, sometimes in English or a mix of both.

Rules:
- sentiment is "positive", "negative" or "neutral". Mixed comments take the dominant tone; when nothing is clearly good or bad, use "neutral".
- topics lists only the areas the comment actually mentions:
  • Pelayanan: staff, cashier, barista, friendliness, speed of service
  • Kualitas Produk: taste, product quality, variety
  • Fasilitas: toilet, air conditioning, parking, wifi
  • Harga: price, promotions, value for money
  • Kebersihan: cleanliness
  • Suasana: ambience, comfort, noise
- Star rating given by the customer: {rating}. Use it only to break ties.

Comment:
{comment}
"""
