CHARACTER_TRAITS_INSTRUCTION = (
    "Look at the main character drawn in this comic panel. "
    "Output 5 to 7 short comma-separated visual tags describing the features that must stay constant "
    "in every panel (species, hair or fur color, clothing, accessories, body type, distinctive marks). "
    "Tags only, no sentences, no numbering."
)
