"""
Application constants for Beta Car Hire.
"""


CAR_TYPES = ("Sedan", "SUV", "Truck", "Van", "SportsCar", "Convertible", "Coupe", "Hatchback", "Wagon")

INTENTS = ("general_chat", "car_inquiry", "pricing", "booking", "availability", "features", "support")

BOOKING_STATUS_ACTIVE = "active"
DEFAULT_BOOKING_DAYS = 7
PRICING_TAX_RATE = 0.1

# Cookie names shared with the frontend
TOKEN_COOKIE = "token"
SESSION_COOKIE = "sessionId"
CHAT_COOKIE = "chatId"

SENDER_USER = "user"
SENDER_ASSISTANT = "assistant"

LOGIN_GREETING = "Hello, how can I help you today?"

WELCOME_MESSAGE = (
    "Hello! Welcome to Beta Car Hire. I'm Sarah, your personal car rental assistant. "
    "I can help you with:\n\n"
    "• Browse our luxury vehicle fleet\n"
    "• Get pricing information\n"
    "• Check availability\n"
    "• Make bookings\n"
    "• Answer questions about our services\n\n"
    "What can I help you with today?"
)

FALLBACK_REPLY = (
    "I apologize, but I encountered an issue processing your request. "
    "Please try again or contact our support team."
)

DEMO_OPTION_REPLY = (
    "Thank you for selecting option {option}. For demo purposes, I can help you with general "
    "inquiries about Beta Car Hire. Please log in to access full functionality including "
    "booking and vehicle search."
)

DEMO_MESSAGE_REPLY = (
    'Thank you for your message: "{message}". I\'m Sarah Martinez from Beta Car Hire. '
    "For demo purposes, I can provide general information. Please log in to access our "
    "full booking system and vehicle database."
)

OPTION_MENU = (
    "I didn't understand that option. Please select from:\n"
    "1. Chat\n2. Booking\n3. Car\n4. Price\n5. Vehicle\n6. Update Rental"
)

CHAT_PROMPT = """You are Sarah Martinez, an Executive Support agent for Beta Car Hire, a premium luxury car rental service. You should:

1. Be polite, professional, and empathetic
2. Help customers with car rentals, bookings, and inquiries
3. Escalate complex issues to human agents when appropriate
4. Keep responses short, crisp and to the point
5. If you don't know the answer, admit it rather than making something up

Company Information:
- Beta Car Hire specializes in luxury and premium vehicles
- We offer Sedan, SUV, Truck, Van, SportsCar, Convertible, Coupe, Hatchback, and Wagon
- Our service includes comprehensive insurance and 24/7 support

Conversation History:
{history}

Customer Context:
- User ID: {user_id}

Current Message: {message}

Please provide a helpful, conversational response as Sarah Martinez. Keep it friendly and professional."""

INTENT_PROMPT = """You are Sarah Martinez, an Executive Support agent for Beta Car Hire, a premium luxury car rental service.
Your primary duty is to analyze the user's message and classify their intent.

User message: "{message}"

Classify the intent and extract relevant entities:

- general_chat: Casual conversation, greetings, thank you, etc.
- car_inquiry: Questions about specific cars, models, features
- pricing: Questions about costs, rates, packages
- booking: Want to make a reservation or book a car
- availability: Checking if cars are available for specific dates
- features: Questions about car features, specifications
- support: Help, complaints, or technical issues

Also determine what tools might be needed to respond properly:
- search_cars: To find available vehicles
- get_user_bookings: To get user's booking history
- check_availability: To verify car availability
- get_car_details: To get specific car information
- get_user_info: To get user profile information

Customer Context:
- User ID: {user_id}

IMPORTANT: Return ONLY valid JSON without any markdown formatting, code blocks, or additional text.

The JSON object must have exactly these keys:
{{
  "intent": one of {intents},
  "confidence": a number between 0 and 1,
  "entities": {{"car_type": string or null, "car_id": string or null, "date_mentioned": string or null, "price_range": string or null, "location": string or null}},
  "requires_tools": a list of tool names from the list above (may be empty)
}}
"""

ENHANCEMENT_PROMPT = """The user asked: "{message}"

I've gathered this information for them:
{tool_output}

Please provide a friendly, conversational response that:
1. Acknowledges their request
2. Presents the information in a natural way
3. Ends with a helpful follow-up question or offer to assist further

Keep it professional but warm, as Sarah from Beta Car Hire."""

PRICE_FORMAT_PROMPT = """Format this car pricing data for text display.
Use only plain text, no markdown, no special formatting.
Put each car on its own line with clear pricing: {car_data}"""
