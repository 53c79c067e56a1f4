# User-facing strings returned in API responses. The client renders them as-is.

DEFAULT_CATEGORY = "غير مصنف"
DEFAULT_CATEGORIES = ["روايات", "علمية", "تاريخية", "دينية", "أطفال"]

UPLOAD_OK = "تم رفع الكتاب بنجاح!"
RATING_OK = "تم تحديث التقييم بنجاح!"

MISSING_FILE = "يرجى رفع ملف الكتاب."
MISSING_FIELDS = "يرجى إدخال عنوان الكتاب واسم المؤلف."
UNSUPPORTED_TYPE = "نوع الملف غير مدعوم. يرجى رفع ملفات PDF، EPUB، أو TXT فقط."
FILE_TOO_LARGE = "حجم الملف كبير جداً. الحد الأقصى هو {limit_mb} ميجابايت."
RATING_OUT_OF_RANGE = "التقييم يجب أن يكون بين 1 و 5."
INVALID_REQUEST = "البيانات المرسلة غير صالحة."

BOOK_NOT_FOUND = "الكتاب غير موجود."
FILE_NOT_FOUND = "الملف غير موجود."

SERVER_ERROR = "حدث خطأ في الخادم."
