"""Wire constants for CF records."""

# S_CFOBJECT: u16 ObjectType, u8 ExtensionCount (mask), u8 RootType
HEADER_FORMAT = "<HBB"

# Records must start on a 32-bit boundary
RECORD_ALIGNMENT = 4

# Dynamic arrays: u16 TypeOfData, u16 NrOfElements, then u32 addresses
ARRAY_HEADER_FORMAT = "<HH"
ARRAY_HEADER_SIZE = 4
ADDRESS_SIZE = 4

# Class ids with a specialised record type
STRING_CLASS_ID = 100
ARRAY_CLASS_ID = 101

# Conventional property names used by the specialised records
STRING_SIZE_PROPERTY = "Size"
STRING_DATA_PROPERTY = "cfData"
ARRAY_LENGTH_PROPERTY = "NrOfElements"
ARRAY_TYPE_PROPERTY = "TypeOfData"
