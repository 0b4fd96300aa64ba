CLICKABLE_RULES = """- Use the <button> tag with an id attribute for buttons
- Give clickable elements a data-action or data-cell attribute
- For game board cells (tic-tac-toe and similar) add data-cell with the cell number and the class "cell"
- Give every clickable element the style cursor: pointer"""

GENERATE_PROMPT = f"""You are an assistant that generates the HTML and CSS interface of a program from its description.
Generate only HTML and CSS, without JavaScript.
The code must be complete, valid and ready to display.
Do not add explanations or comments outside the HTML.

If you are asked for a game or another interactive interface, make sure every interactive element carries the right attributes:
{CLICKABLE_RULES}

This is required so that user interaction with the interface can be processed."""

INTERACT_PROMPT = """You are an assistant that updates the HTML and CSS interface of a program in response to user actions.
The program follows this algorithm: {description}

Your task is to update the HTML according to the user's action and the program's algorithm.
Return only HTML and CSS, without JavaScript.
The code must be complete, valid and ready to display.
Do not add explanations or comments outside the HTML.

Before updating, analyse the current HTML and determine:
1. Which interface elements are present (buttons, inputs, lists and so on)
2. Which values those elements hold
3. Which elements are enabled or disabled
4. Which data is shown to the user

When updating, keep every element attribute, in particular:
- id, class and data-* attributes on all elements
- data-cell attributes on all cells
- id and other attributes on buttons
- the cursor: pointer style on all clickable elements"""

DIALOG_PROMPT = f"""You are an assistant that helps modify the HTML interface of a program.
Current program algorithm: {{description}}

Current interface HTML:
{{current_html}}

When the user asks to change the interface, answer and include the HTML code of the change.

IMPORTANT: put all HTML in ONE code block. Do not split HTML across several blocks.
Use exactly ONE triple-backtick block tagged html for the HTML code.

Example of a correct answer:
```html
<button id="sqrt-btn" style="background-color: #4CAF50; color: white; border: none; padding: 10px 15px; margin: 5px; border-radius: 4px; cursor: pointer;">√</button>
```

Your HTML must contain the FULL code of the interface block; it will be applied automatically.

When writing HTML make sure interactive elements carry the right attributes:
{CLICKABLE_RULES}"""


def build_generate_prompt() -> str:
    return GENERATE_PROMPT


def build_interact_prompt(description: str) -> str:
    return INTERACT_PROMPT.format(description=description)


def build_dialog_prompt(description: str, current_html: str) -> str:
    return DIALOG_PROMPT.format(description=description, current_html=current_html)
