from typing import Dict, List, Optional
from backend.app.schemas import RiskLevel, Tip, TipsByCategory, MAX_TIPS_PER_CATEGORY

def _tip(category: str, title: str, short: str, long: str) -> Tip:
    return Tip(title=title, short_description=short, long_description=long, category=category)

# Pre-authored recommendations per risk level, in priority order
CATALOG: Dict[RiskLevel, List[Tip]] = {
    RiskLevel.LOW: [
        _tip("diet", "🥗 Keep Your Plate Colorful",
             "Fill half your plate with vegetables and fruit at most meals to keep fiber and antioxidants high.",
             "Aim for a mix of colors across the day: leafy greens, berries, carrots and peppers. "
             "Variety brings different vitamins and polyphenols that support healthy blood vessels, "
             "and the fiber keeps you full so snacking on processed food becomes less tempting."),
        _tip("diet", "💧 Hydrate Through the Day",
             "Drink water regularly instead of waiting until you feel thirsty, especially around activity.",
             "Keep a bottle within reach and sip through the day. Good hydration supports circulation "
             "and energy. Swap sugary drinks for water, sparkling water or unsweetened tea and you "
             "cut empty calories without noticing."),
        _tip("diet", "🥜 Snack Smart",
             "Choose nuts, yogurt or fruit for snacks rather than chips or pastries.",
             "A small handful of unsalted nuts or a pot of plain yogurt gives protein and healthy fats "
             "that steady blood sugar. Prepare snacks ahead so the healthy option is always the easy one "
             "when hunger arrives in the afternoon."),
        _tip("exercise", "🚶 Keep Moving Daily",
             "Maintain at least 30 minutes of brisk walking or similar activity on most days of the week.",
             "Regular moderate activity keeps your heart efficient and your blood pressure in range. "
             "Split it into shorter walks if that fits your schedule better; consistency matters more "
             "than intensity for long-term cardiovascular health."),
        _tip("exercise", "🏋️ Add Some Strength",
             "Include two short strength sessions each week using bodyweight or light weights.",
             "Squats, push-ups against a wall and resistance bands build muscle that improves how your "
             "body uses glucose. Twenty minutes twice a week is enough to start, and it protects joints "
             "and balance as you get older."),
        _tip("sleep", "🌙 Keep a Steady Bedtime",
             "Go to bed and wake up at roughly the same time every day, including weekends.",
             "A consistent schedule anchors your body clock, making it easier to fall asleep and wake "
             "refreshed. Aim for seven to nine hours and protect the routine even on busy days; your "
             "heart rate and blood pressure recover overnight."),
        _tip("stress", "🧘 Take Breathing Breaks",
             "Pause for a few slow, deep breaths whenever you switch tasks during the day.",
             "Slow breathing with a longer exhale activates the body's relaxation response and lowers "
             "heart rate within minutes. Pair it with regular moments like opening your laptop or "
             "waiting for the kettle so the habit sticks without effort."),
        _tip("stress", "🌳 Get Outside",
             "Spend a little time outdoors each day to reset your mood and attention.",
             "Even ten minutes in a park or garden reduces stress hormones and improves focus. Combine "
             "it with a walk or a phone call so it fits into your day, and try to catch some morning "
             "daylight to support your sleep rhythm as well."),
    ],
    RiskLevel.MODERATE: [
        _tip("diet", "🧂 Cut Back on Salt",
             "Limit salty processed foods and taste before adding salt to help keep blood pressure in check.",
             "Most sodium comes from bread, sauces, ready meals and cured meats rather than the salt "
             "shaker. Read labels, cook more at home and flavor food with herbs, citrus and spices. "
             "Lower sodium intake can reduce blood pressure within weeks."),
        _tip("diet", "🐟 Choose Healthy Fats",
             "Swap butter and fatty meats for olive oil, fish, nuts and seeds a few times a week.",
             "Unsaturated fats help improve cholesterol balance and support flexible blood vessels. Aim "
             "for oily fish such as salmon or sardines twice a week and use olive oil for cooking. "
             "Keep portions of red and processed meat small."),
        _tip("diet", "🌾 Go for Whole Grains",
             "Replace white bread, rice and pasta with whole-grain versions to steady blood sugar.",
             "Whole grains keep their fiber, which slows digestion and avoids sharp glucose spikes. "
             "Oats, brown rice, barley and wholemeal bread also help lower cholesterol. Start by "
             "switching one staple at a time so the change feels easy."),
        _tip("diet", "🍬 Watch Added Sugar",
             "Keep sweets and sugary drinks as occasional treats rather than daily habits.",
             "Added sugar raises triglycerides and contributes to weight gain around the waist, both "
             "linked to heart risk. Check labels for hidden sugars in cereals and sauces, and satisfy "
             "cravings with fruit or a small square of dark chocolate."),
        _tip("exercise", "🚴 Build Up Gradually",
             "Work toward 150 minutes of moderate activity per week, increasing by a few minutes each week.",
             "Brisk walking, cycling or swimming all count. Increase duration before intensity and "
             "listen to your body; mild breathlessness is fine, chest pain or dizziness is not. "
             "Talk with your doctor before starting anything strenuous."),
        _tip("exercise", "🪑 Break Up Sitting",
             "Stand up and move for a couple of minutes every half hour when you sit for long periods.",
             "Long uninterrupted sitting slows circulation and blood sugar handling. Set a gentle "
             "reminder, take calls standing or walk to refill your water. These small breaks add up "
             "and complement your planned exercise sessions."),
        _tip("sleep", "📵 Wind Down Without Screens",
             "Switch off phones and screens about an hour before bed to fall asleep more easily.",
             "Bright screens and stimulating content delay the release of melatonin. Replace scrolling "
             "with reading, stretching or a warm shower. Better sleep supports blood pressure control "
             "and makes healthy food choices easier the next day."),
        _tip("sleep", "☕ Time Your Caffeine",
             "Avoid coffee, strong tea and energy drinks after early afternoon.",
             "Caffeine can stay in your system for many hours and fragment deep sleep even if you fall "
             "asleep fine. Switch to decaf or herbal tea after lunch and notice whether you wake "
             "feeling more rested within a week."),
        _tip("stress", "📝 Write Down Worries",
             "Spend five minutes jotting down what is on your mind before evening to clear your head.",
             "Putting concerns on paper and noting one small next step for each reduces rumination and "
             "helps sleep. Persistent stress raises blood pressure and heart rate, so a simple daily "
             "outlet is worth protecting."),
    ],
    RiskLevel.HIGH: [
        _tip("diet", "🩺 Follow a Heart-Healthy Plan",
             "Base meals on vegetables, legumes, whole grains and lean protein, and ask your clinician about a dietitian.",
             "A structured eating pattern such as DASH or Mediterranean can meaningfully lower blood "
             "pressure and cholesterol. Because your risk is elevated, personalized guidance from a "
             "dietitian helps you adapt it to any medication or condition you have."),
        _tip("diet", "🧂 Keep Sodium Low",
             "Aim for well under a teaspoon of salt per day in total, including what is hidden in packaged food.",
             "Cook from fresh ingredients as often as possible, rinse canned beans and vegetables, and "
             "avoid adding salt at the table. Lower sodium reduces fluid retention and the strain on "
             "your heart and blood vessels."),
        _tip("diet", "🍷 Limit Alcohol",
             "Keep alcohol to a minimum and have several alcohol-free days every week.",
             "Alcohol raises blood pressure and adds calories with no nutritional benefit. If you drink, "
             "keep to small amounts with food and alternate with water. Check with your doctor about "
             "interactions with any medicines you take."),
        _tip("exercise", "👩‍⚕️ Exercise With Guidance",
             "Check with your doctor before increasing activity, then start with gentle daily walks.",
             "Light, regular movement improves circulation and blood sugar, but with higher risk it is "
             "important to know your safe limits. Ask about a supervised or cardiac rehabilitation "
             "program and stop immediately if you feel chest pain or faintness."),
        _tip("exercise", "🦵 Gentle Mobility",
             "Do a few minutes of light stretching or chair exercises each morning.",
             "Gentle mobility keeps joints comfortable and makes other activity easier. Move slowly, "
             "breathe steadily and avoid holding your breath during effort. Over time this builds the "
             "confidence to add longer walks as your clinician advises."),
        _tip("sleep", "😴 Check Your Sleep Quality",
             "Mention loud snoring, gasping at night or daytime sleepiness to your doctor.",
             "These can be signs of sleep apnea, which is common alongside high blood pressure and heart "
             "disease and very treatable. Meanwhile keep a regular schedule, a cool dark bedroom and "
             "avoid heavy meals late in the evening."),
        _tip("stress", "🤝 Lean on Support",
             "Share how you are feeling with people you trust and consider professional support if stress feels constant.",
             "Ongoing stress affects heart rhythm, blood pressure and habits like eating and sleep. "
             "Talking things through, joining a support group or speaking to a counselor can ease the "
             "load. You do not have to manage a health concern alone."),
        _tip("stress", "🌬️ Practice Daily Relaxation",
             "Set aside ten minutes each day for slow breathing, meditation or calm music.",
             "Regular relaxation practice can lower resting heart rate and blood pressure over time. "
             "Choose a fixed time, such as after lunch or before bed, sit comfortably and breathe "
             "slowly through your nose. Guided audio can help you get started."),
    ],
}

class DeterministicTipProvider:
    """Static, risk-level keyed tips. Never fails; the terminal fallback tier."""

    def __init__(self, catalog: Dict[RiskLevel, List[Tip]] = None):
        self.catalog = CATALOG if catalog is None else catalog

    def by_risk_level(self, risk_level: Optional[str]) -> List[Tip]:
        level = RiskLevel.parse(risk_level)
        if level is None:
            return []
        return list(self.catalog.get(level, []))

    def fallback_for(self, risk_level: Optional[str]) -> TipsByCategory:
        result: TipsByCategory = {}
        for tip in self.by_risk_level(risk_level):
            bucket = result.setdefault(tip.category, [])
            if len(bucket) < MAX_TIPS_PER_CATEGORY:
                bucket.append(tip.model_copy())
        return result

tip_catalog = DeterministicTipProvider()
