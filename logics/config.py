# Source slots
MIN_SOURCES = 3  # Slots 1-3 are required
MAX_SOURCES = 4
OPTIONAL_SLOT = 4

# Encodings tried in order when reading a source file
READ_ENCODINGS = ['utf-8-sig', 'cp1252', 'latin-1']

# Row / cell colour tags
COLOR_SAME = 'green'
COLOR_PARTIAL = 'yellow'
COLOR_DIFFERENT = 'red'
COLOR_ALL_MISSING = 'blue'
COLOR_EMPTY = 'empty'

# Background tint of an auto-filled final value
FILL_SAME = '#c8e6c9'      # light green
FILL_PARTIAL = '#fff9c4'   # light yellow

# Treat a row with every cell empty as its own class instead of "Different"
SEPARATE_ALL_MISSING_CLASS = False

# Export
EXPORT_HEADER = 'Feature,Final Data'
EXPORT_FILENAME_PREFIX = 'final_data_'
TIMESTAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'
EXPORT_FORMATS = ('csv', 'xlsx')
