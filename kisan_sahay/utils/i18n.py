"""
Translation table for farmer-facing strings.

Lookups fall back to Marathi, then to the key itself. Only the short UI keys
carry all eight languages; feedback, suggestion and notification templates are
written for mr / hi / en.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional

FALLBACK_LANGUAGE = "mr"

SUPPORTED_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "mr": "मराठी",
    "hi": "हिंदी",
    "en": "English",
    "te": "తెలుగు",
    "kn": "ಕನ್ನಡ",
    "pa": "ਪੰਜਾਬੀ",
    "gu": "ગુજરાતી",
    "bn": "বাংলা",
})

_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    # Greetings
    "greeting.hello": {
        "mr": "नमस्कार", "hi": "नमस्ते", "en": "Hello",
        "te": "హలో", "kn": "ಹಲೋ", "pa": "ਸਤ ਸ੍ਰੀ ਅਕਾਲ", "gu": "નમસ્તે", "bn": "হ্যালো",
    },
    "greeting.welcome": {
        "mr": "स्वागत आहे", "hi": "स्वागत है", "en": "Welcome",
        "te": "స్వాగతం", "kn": "ಸ್ವಾಗತ", "pa": "ਜੀ ਆਇਆਂ ਨੂੰ", "gu": "સ્વાગત છે", "bn": "স্বাগতম",
    },

    # Check-in
    "checkin.reminder": {
        "mr": "तुमची साप्ताहिक तब्येत चेक-इन करण्याची वेळ झाली!",
        "hi": "आपकी साप्ताहिक स्वास्थ्य जांच का समय है!",
        "en": "Time for your weekly wellness check-in!",
        "te": "మీ వారపు ఆరోగ్య తనిఖీ సమయం!",
        "kn": "ನಿಮ್ಮ ವಾರದ ಯೋಗಕ್ಷೇಮ ಪರಿಶೀಲನೆ ಸಮಯ!",
        "pa": "ਤੁਹਾਡੀ ਹਫ਼ਤਾਵਾਰੀ ਸਿਹਤ ਜਾਂਚ ਦਾ ਸਮਾਂ!",
        "gu": "તમારી સાપ્તાહિક સ્વાસ્થ્ય તપાસનો સમય!",
        "bn": "আপনার সাপ্তাহিক স্বাস্থ্য পরীক্ষার সময়!",
    },
    "checkin.thankyou": {
        "mr": "धन्यवाद! तुमची माहिती सुरक्षित नोंदवली गेली.",
        "hi": "धन्यवाद! आपकी जानकारी सुरक्षित रूप से दर्ज की गई.",
        "en": "Thank you! Your information has been safely recorded.",
        "te": "ధన్యవాదాలు! మీ సమాచారం సురక్షితంగా నమోదు చేయబడింది.",
        "kn": "ಧನ್ಯವಾದಗಳು! ನಿಮ್ಮ ಮಾಹಿತಿ ಸುರಕ್ಷಿತವಾಗಿ ದಾಖಲಾಗಿದೆ.",
        "pa": "ਧੰਨਵਾਦ! ਤੁਹਾਡੀ ਜਾਣਕਾਰੀ ਸੁਰੱਖਿਅਤ ਢੰਗ ਨਾਲ ਦਰਜ ਕੀਤੀ ਗਈ.",
        "gu": "આભાર! તમારી માહિતી સુરક્ષિત રીતે નોંધાયેલ છે.",
        "bn": "ধন্যবাদ! আপনার তথ্য নিরাপদে রেকর্ড করা হয়েছে.",
    },

    # Risk summaries
    "risk.low": {
        "mr": "तुमची स्थिती चांगली दिसते! असेच चालू ठेवा.",
        "hi": "आपकी स्थिति अच्छी लग रही है! ऐसे ही जारी रखें.",
        "en": "Your situation looks good! Keep it up.",
        "te": "మీ పరిస్థితి బాగుంది! అలాగే కొనసాగించండి.",
        "kn": "ನಿಮ್ಮ ಪರಿಸ್ಥಿತಿ ಚೆನ್ನಾಗಿ ಕಾಣುತ್ತಿದೆ! ಇದನ್ನು ಮುಂದುವರಿಸಿ.",
        "pa": "ਤੁਹਾਡੀ ਸਥਿਤੀ ਚੰਗੀ ਲੱਗ ਰਹੀ ਹੈ! ਇਸੇ ਤਰ੍ਹਾਂ ਜਾਰੀ ਰੱਖੋ.",
        "gu": "તમારી સ્થિતિ સારી લાગે છે! આમ જ ચાલુ રાખો.",
        "bn": "আপনার অবস্থা ভালো দেখাচ্ছে! এভাবে চালিয়ে যান.",
    },
    "risk.moderate": {
        "mr": "आमच्या लक्षात आले की काही गोष्टी कठीण आहेत. आम्ही तुमच्यासोबत आहोत.",
        "hi": "हमने देखा कि कुछ चीजें कठिन हैं. हम आपके साथ हैं.",
        "en": "We noticed some things are challenging. We are with you.",
        "te": "కొన్ని విషయాలు కష్టంగా ఉన్నాయని మేము గమనించాము. మేము మీతో ఉన్నాము.",
        "kn": "ಕೆಲವು ವಿಷಯಗಳು ಕಷ್ಟಕರವಾಗಿದೆ ಎಂದು ನಾವು ಗಮನಿಸಿದ್ದೇವೆ. ನಾವು ನಿಮ್ಮೊಂದಿಗಿದ್ದೇವೆ.",
        "pa": "ਅਸੀਂ ਦੇਖਿਆ ਕਿ ਕੁਝ ਚੀਜ਼ਾਂ ਔਖੀਆਂ ਹਨ. ਅਸੀਂ ਤੁਹਾਡੇ ਨਾਲ ਹਾਂ.",
        "gu": "અમે જોયું કે કેટલીક વસ્તુઓ મુશ્કેલ છે. અમે તમારી સાથે છીએ.",
        "bn": "আমরা লক্ষ্য করেছি কিছু জিনিস কঠিন। আমরা আপনার সাথে আছি।",
    },
    "risk.high": {
        "mr": "तुम्हाला सध्या अनेक आव्हानांचा सामना करावा लागत आहे. कृपया मदतीसाठी संपर्क साधा.",
        "hi": "आप वर्तमान में कई चुनौतियों का सामना कर रहे हैं. कृपया मदद के लिए संपर्क करें.",
        "en": "You are currently facing many challenges. Please reach out for help.",
        "te": "మీరు ప్రస్తుతం అనేక సవాళ్లను ఎదుర్కొంటున్నారు. దయచేసి సహాయం కోసం సంప్రదించండి.",
        "kn": "ನೀವು ಪ್ರಸ್ತುತ ಅನೇಕ ಸವಾಲುಗಳನ್ನು ಎದುರಿಸುತ್ತಿದ್ದೀರಿ. ದಯವಿಟ್ಟು ಸಹಾಯಕ್ಕಾಗಿ ಸಂಪರ್ಕಿಸಿ.",
        "pa": "ਤੁਸੀਂ ਇਸ ਵੇਲੇ ਬਹੁਤ ਸਾਰੀਆਂ ਚੁਣੌਤੀਆਂ ਦਾ ਸਾਹਮਣਾ ਕਰ ਰਹੇ ਹੋ. ਕਿਰਪਾ ਕਰਕੇ ਮਦਦ ਲਈ ਸੰਪਰਕ ਕਰੋ.",
        "gu": "તમે હાલમાં ઘણા પડકારોનો સામનો કરી રહ્યા છો. કૃપા કરીને મદદ માટે સંપર્ક કરો.",
        "bn": "আপনি বর্তমানে অনেক চ্যালেঞ্জের মুখোমুখি হচ্ছেন। দয়া করে সাহায্যের জন্য যোগাযোগ করুন।",
    },
    "risk.critical": {
        "mr": "तुमची परिस्थिती गंभीर दिसत आहे. आम्ही तातडीने तुमच्याशी संपर्क साधू. कृपया धीर धरा.",
        "hi": "आपकी स्थिति गंभीर दिख रही है. हम तुरंत आपसे संपर्क करेंगे. कृपया धैर्य रखें.",
        "en": "Your situation appears critical. We will contact you urgently. Please hold on.",
        "te": "మీ పరిస్థితి తీవ్రంగా కనిపిస్తోంది. మేము అత్యవసరంగా మిమ్మల్ని సంప్రదిస్తాము. దయచేసి ఆగండి.",
        "kn": "ನಿಮ್ಮ ಪರಿಸ್ಥಿತಿ ತೀವ್ರವಾಗಿ ಕಾಣುತ್ತಿದೆ. ನಾವು ತುರ್ತಾಗಿ ನಿಮ್ಮನ್ನು ಸಂಪರ್ಕಿಸುತ್ತೇವೆ. ದಯವಿಟ್ಟು ಹಿಡಿದಿಡಿ.",
        "pa": "ਤੁਹਾਡੀ ਸਥਿਤੀ ਗੰਭੀਰ ਦਿਖਾਈ ਦੇ ਰਹੀ ਹੈ. ਅਸੀਂ ਜ਼ਰੂਰੀ ਤੌਰ 'ਤੇ ਤੁਹਾਡੇ ਨਾਲ ਸੰਪਰਕ ਕਰਾਂਗੇ. ਕਿਰਪਾ ਕਰਕੇ ਧੀਰਜ ਰੱਖੋ.",
        "gu": "તમારી સ્થિતિ ગંભીર દેખાય છે. અમે તાત્કાલિક તમારો સંપર્ક કરીશું. કૃપા કરીને ધીરજ રાખો.",
        "bn": "আপনার অবস্থা গুরুতর দেখাচ্ছে। আমরা জরুরিভাবে আপনার সাথে যোগাযোগ করব। দয়া করে ধৈর্য ধরুন।",
    },

    # Helpline
    "helpline.message": {
        "mr": "मदतीसाठी हेल्पलाइन: 1800-233-4000",
        "hi": "मदद के लिए हेल्पलाइन: 1800-233-4000",
        "en": "Helpline for assistance: 1800-233-4000",
        "te": "సహాయం కోసం హెల్ప్‌లైన్: 1800-233-4000",
        "kn": "ಸಹಾಯಕ್ಕಾಗಿ ಹೆಲ್ಪ್‌ಲೈನ್: 1800-233-4000",
        "pa": "ਮਦਦ ਲਈ ਹੈਲਪਲਾਈਨ: 1800-233-4000",
        "gu": "સહાય માટે હેલ્પલાઈન: 1800-233-4000",
        "bn": "সাহায্যের জন্য হেল্পলাইন: 1800-233-4000",
    },

    # Check-in feedback messages
    "feedback.low.greeting": {
        "mr": "नमस्कार! तुमची स्थिती चांगली दिसत आहे.",
        "hi": "नमस्ते! आपकी स्थिति अच्छी दिख रही है.",
        "en": "Hello! Your situation looks good.",
    },
    "feedback.low.body": {
        "mr": "तुम्ही योग्य मार्गावर आहात. असेच चांगले काम सुरू ठेवा आणि स्वतःची काळजी घ्या.",
        "hi": "आप सही रास्ते पर हैं. ऐसे ही अच्छा काम जारी रखें और अपना ख्याल रखें.",
        "en": "You are on the right track. Keep up the good work and take care of yourself.",
    },
    "feedback.low.closing": {
        "mr": "आम्ही तुमच्या सोबत आहोत! 💚",
        "hi": "हम आपके साथ हैं! 💚",
        "en": "We are with you! 💚",
    },
    "feedback.moderate.greeting": {
        "mr": "नमस्कार! आम्ही तुमची काळजी घेतो.",
        "hi": "नमस्ते! हम आपकी परवाह करते हैं.",
        "en": "Hello! We care about you.",
    },
    "feedback.moderate.body": {
        "mr": "काही आव्हाने असू शकतात, पण तुम्ही एकटे नाही. शेजारी, मित्र किंवा कुटुंबाशी बोला.",
        "hi": "कुछ चुनौतियां हो सकती हैं, लेकिन आप अकेले नहीं हैं. पड़ोसी, दोस्त या परिवार से बात करें.",
        "en": "There may be some challenges, but you are not alone. Talk to a neighbour, friend or family member.",
    },
    "feedback.moderate.closing": {
        "mr": "छोट्या पावलांनी मोठा बदल होतो! 💛",
        "hi": "छोटे कदमों से बड़ा बदलाव आता है! 💛",
        "en": "Small steps bring big change! 💛",
    },
    "feedback.high.greeting": {
        "mr": "प्रिय शेतकरी बंधू/भगिनी,",
        "hi": "प्रिय किसान भाई/बहन,",
        "en": "Dear farmer,",
    },
    "feedback.high.body": {
        "mr": "तुम्ही कठीण परिस्थितीतून जात आहात हे आम्हाला समजते. कृपया खाली दिलेल्या हेल्पलाइनवर संपर्क साधा. मदत उपलब्ध आहे.",
        "hi": "हम समझते हैं कि आप कठिन परिस्थिति से गुजर रहे हैं. कृपया नीचे दी गई हेल्पलाइन पर संपर्क करें. मदद उपलब्ध है.",
        "en": "We understand you are going through a difficult time. Please contact the helpline below. Help is available.",
    },
    "feedback.high.closing": {
        "mr": "तुम्ही महत्वाचे आहात! मदत मागण्यात कोणतीही लाज नाही! 🧡",
        "hi": "आप महत्वपूर्ण हैं! मदद मांगने में कोई शर्म नहीं है! 🧡",
        "en": "You matter! There is no shame in asking for help! 🧡",
    },
    "feedback.critical.greeting": {
        "mr": "🆘 प्रिय शेतकरी बंधू/भगिनी,",
        "hi": "🆘 प्रिय किसान भाई/बहन,",
        "en": "🆘 Dear farmer,",
    },
    "feedback.critical.body": {
        "mr": "तुम्ही खूप कठीण परिस्थितीत आहात. आत्ताच मदत मिळवणे खूप महत्वाचे आहे. कृपया लगेच हेल्पलाइनवर कॉल करा: 1800-233-4000",
        "hi": "आप बहुत कठिन परिस्थिति में हैं. अभी मदद लेना बहुत जरूरी है. कृपया तुरंत हेल्पलाइन पर कॉल करें: 1800-233-4000",
        "en": "You are in a very difficult situation. Getting help right now is very important. Please call the helpline immediately: 1800-233-4000",
    },
    "feedback.critical.closing": {
        "mr": "तुमचे जीवन मौल्यवान आहे! आम्ही तुमच्या सोबत आहोत! ❤️",
        "hi": "आपका जीवन अनमोल है! हम आपके साथ हैं! ❤️",
        "en": "Your life is precious! We are with you! ❤️",
    },

    # Suggestion cards
    "suggestion.crop_poor.title": {
        "mr": "कृषी विभाग संपर्क", "hi": "कृषि विभाग संपर्क", "en": "Contact the agriculture department",
    },
    "suggestion.crop_poor.desc": {
        "mr": "पीक विमा आणि नुकसान भरपाईसाठी तालुका कृषी अधिकाऱ्यांशी संपर्क साधा",
        "hi": "फसल बीमा और नुकसान भरपाई के लिए तालुका कृषि अधिकारी से संपर्क करें",
        "en": "Contact the taluka agriculture officer about crop insurance and compensation",
    },
    "suggestion.loan_high.title": {
        "mr": "कर्ज पुनर्रचना", "hi": "ऋण पुनर्गठन", "en": "Loan restructuring",
    },
    "suggestion.loan_high.desc": {
        "mr": "बँकेत कर्ज पुनर्रचनेसाठी अर्ज करा. सरकारी योजनांचा लाभ घ्या",
        "hi": "बैंक में ऋण पुनर्गठन के लिए आवेदन करें. सरकारी योजनाओं का लाभ लें",
        "en": "Apply to your bank for loan restructuring. Use the government schemes available",
    },
    "suggestion.sleep_poor.title": {
        "mr": "झोप सुधारणा", "hi": "नींद सुधार", "en": "Better sleep",
    },
    "suggestion.sleep_poor.desc": {
        "mr": "रात्री उशिरा मोबाइल वापर टाळा. नियमित वेळेत झोपा",
        "hi": "देर रात मोबाइल का उपयोग न करें. नियमित समय पर सोएं",
        "en": "Avoid using the phone late at night. Sleep at a regular time",
    },
    "suggestion.family_weak.title": {
        "mr": "कुटुंब संवाद", "hi": "परिवार से बातचीत", "en": "Talk with family",
    },
    "suggestion.family_weak.desc": {
        "mr": "कुटुंबातील सदस्यांशी मोकळेपणाने बोला. एकत्र वेळ घालवा",
        "hi": "परिवार के सदस्यों से खुलकर बात करें. साथ में समय बिताएं",
        "en": "Speak openly with your family members. Spend time together",
    },
    "suggestion.hope_low.title": {
        "mr": "सकारात्मक विचार", "hi": "सकारात्मक सोच", "en": "Positive thinking",
    },
    "suggestion.hope_low.desc": {
        "mr": "कठीण काळ नक्की संपतो. यशस्वी शेतकऱ्यांच्या कथा वाचा",
        "hi": "कठिन समय जरूर खत्म होता है. सफल किसानों की कहानियां पढ़ें",
        "en": "Hard times do end. Read stories of successful farmers",
    },
    "suggestion.agriculture.title": {
        "mr": "कृषी सल्ला", "hi": "कृषि सलाह", "en": "Farming advice",
    },
    "suggestion.agriculture.desc": {
        "mr": "नवीन पिक पद्धती आणि शेती तंत्रज्ञानाबद्दल जाणून घ्या",
        "hi": "नई फसल पद्धतियों और खेती की तकनीक के बारे में जानें",
        "en": "Learn about new cropping methods and farming technology",
    },
    "suggestion.government.title": {
        "mr": "सरकारी योजना", "hi": "सरकारी योजनाएं", "en": "Government schemes",
    },
    "suggestion.government.desc": {
        "mr": "पीएम किसान, विमा योजना आणि इतर लाभ मिळवा",
        "hi": "पीएम किसान, बीमा योजना और अन्य लाभ प्राप्त करें",
        "en": "Get PM-Kisan, insurance schemes and other benefits",
    },

    # Notification templates
    "reminder.weekly_checkin": {
        "mr": "🌾 नमस्कार {name}, आठवड्याची तब्येत तपासणी करण्याची वेळ झाली! किसान सहाय मध्ये चेक-इन करा.",
        "hi": "🌾 नमस्ते {name}, साप्ताहिक स्वास्थ्य जांच का समय! किसान सहाय में चेक-इन करें।",
        "en": "🌾 Hello {name}, time for your weekly wellness check-in! Check in on Kisan Sahay.",
    },
    "reminder.follow_up": {
        "mr": "💚 {name}, आम्ही तुमची काळजी घेतो. तुमची तब्येत कशी आहे? किसान सहाय मध्ये भेट द्या.",
        "hi": "💚 {name}, हम आपकी परवाह करते हैं। आप कैसे हैं? किसान सहाय पर विजिट करें।",
        "en": "💚 {name}, we care about you. How are you feeling? Visit Kisan Sahay.",
    },
    "reminder.appointment": {
        "mr": "📅 {name}, तुमची समुपदेशन भेट उद्या आहे. कृपया वेळेवर या.",
        "hi": "📅 {name}, आपकी परामर्श मुलाकात कल है। कृपया समय पर आएं।",
        "en": "📅 {name}, your counseling appointment is tomorrow. Please be on time.",
    },
    "reminder.custom": {
        "mr": "{message}", "hi": "{message}", "en": "{message}",
    },
    "otp.message": {
        "mr": "तुमचा किसान सहाय OTP {otp} आहे. {minutes} मिनिटांत वापरा. कोणाशीही शेअर करू नका.",
        "hi": "आपका किसान सहाय OTP {otp} है। {minutes} मिनट में उपयोग करें। किसी से साझा न करें।",
        "en": "Your Kisan Sahay OTP is {otp}. Use within {minutes} minutes. Do not share with anyone.",
    },
    "alert.counselor": {
        "mr": "🚨 सूचना: शेतकरी {name} ({district}) यांनी {level} जोखमीचे चेक-इन सादर केले आहे. कृपया त्वरित पाहा.",
        "hi": "🚨 अलर्ट: किसान {name} ({district}) ने {level} जोखिम वाला चेक-इन जमा किया है। कृपया तुरंत देखें।",
        "en": "🚨 ALERT: Farmer {name} ({district}) has submitted a {level} risk check-in. Please review immediately.",
    },
    "alert.digest": {
        "mr": "📋 {name}, तुमच्याकडे {count} प्रलंबित सूचना आहेत ({critical} गंभीर).",
        "hi": "📋 {name}, आपके पास {count} लंबित अलर्ट हैं ({critical} गंभीर)।",
        "en": "📋 {name}, you have {count} pending alerts ({critical} critical).",
    },
}

TRANSLATIONS: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {key: MappingProxyType(values) for key, values in _TRANSLATIONS.items()}
)


def is_language_supported(lang: Optional[str]) -> bool:
    return lang in SUPPORTED_LANGUAGES


def t(key: str, lang: Optional[str] = FALLBACK_LANGUAGE) -> str:
    translation = TRANSLATIONS.get(key)
    if translation is None:
        return key
    return translation.get(lang or FALLBACK_LANGUAGE) or translation.get(FALLBACK_LANGUAGE) or key


def t_with_vars(key: str, variables: Mapping[str, object], lang: Optional[str] = FALLBACK_LANGUAGE) -> str:
    text = t(key, lang)
    for name, value in variables.items():
        text = text.replace("{" + name + "}", str(value))
    return text


def get_all_translations(lang: Optional[str] = FALLBACK_LANGUAGE) -> Dict[str, str]:
    return {key: t(key, lang) for key in TRANSLATIONS}
