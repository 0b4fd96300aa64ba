from enum import StrEnum


class Template(StrEnum):
    CALCULATOR = "calculator"
    TODO_LIST = "todo_list"
    CONTACT_FORM = "contact_form"
    GUESS_GAME = "guess_game"
    GENERIC = "generic"


# Checked in this order; the first template with a matching keyword wins.
TEMPLATE_KEYWORDS: list[tuple[Template, tuple[str, ...]]] = [
    (Template.CALCULATOR, ("calculator", "калькулятор")),
    (Template.TODO_LIST, ("list", "task", "todo", "список", "задач")),
    (Template.CONTACT_FORM, ("form", "feedback", "contact", "форма", "обратная связь", "контакт")),
    (Template.GUESS_GAME, ("game", "guess", "игра", "угадай")),
]


def select_template(description: str) -> Template:
    text = description.lower()
    for template, keywords in TEMPLATE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return template
    return Template.GENERIC


SHELL_HEAD = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Generated interface</title>
    <style>
        body {
            font-family: Arial, sans-serif;
            margin: 0;
            padding: 20px;
            background-color: #f5f5f5;
        }
        .container {
            max-width: 800px;
            margin: 0 auto;
            background-color: white;
            padding: 20px;
            border-radius: 8px;
            box-shadow: 0 2px 10px rgba(0, 0, 0, 0.1);
        }
        h1 {
            color: #333;
            text-align: center;
        }
        button {
            background-color: #4CAF50;
            color: white;
            border: none;
            padding: 10px 15px;
            margin: 5px;
            border-radius: 4px;
            cursor: pointer;
        }
        button:hover {
            background-color: #45a049;
        }
        input, textarea {
            width: 100%;
            padding: 10px;
            margin: 10px 0;
            border: 1px solid #ddd;
            border-radius: 4px;
        }
        .result {
            margin-top: 20px;
            padding: 15px;
            background-color: #f9f9f9;
            border-radius: 4px;
            border: 1px solid #ddd;
        }
    </style>
</head>
<body>
    <div class="container">
        <h1>Program interface</h1>"""

SHELL_TAIL = """
    </div>
</body>
</html>"""

BODIES: dict[Template, str] = {
    Template.CALCULATOR: """
        <div>
            <input type="number" id="num1" placeholder="First number">
            <input type="number" id="num2" placeholder="Second number">
            <div>
                <button id="add">Add</button>
                <button id="subtract">Subtract</button>
                <button id="multiply">Multiply</button>
                <button id="divide">Divide</button>
            </div>
            <div class="result" id="result">Result: </div>
        </div>""",
    Template.TODO_LIST: """
        <div>
            <input type="text" id="task-input" placeholder="Enter a task...">
            <button id="add-task">Add task</button>
            <ul id="task-list">
                <li>Sample task 1</li>
                <li>Sample task 2</li>
            </ul>
        </div>""",
    Template.CONTACT_FORM: """
        <div>
            <h2>Feedback form</h2>
            <input type="text" id="name" placeholder="Your name">
            <input type="email" id="email" placeholder="Your email">
            <textarea id="message" placeholder="Your message" rows="5"></textarea>
            <button id="send">Send</button>
            <div class="result" id="form-result"></div>
        </div>""",
    Template.GUESS_GAME: """
        <div>
            <h2>Guess the number</h2>
            <p>I picked a number from 1 to 100. Try to guess it!</p>
            <input type="number" id="guess" placeholder="Your guess">
            <button id="check-guess">Check</button>
            <div class="result" id="game-result"></div>
        </div>""",
    Template.GENERIC: """
        <div>
            <h2>Demo interface</h2>
            <p>This is a demo interface generated from your description.</p>
            <input type="text" id="input" placeholder="Enter some text...">
            <button id="action-button">Run action</button>
            <div class="result" id="demo-result"></div>
        </div>""",
}


def render_template(template: Template) -> str:
    return SHELL_HEAD + BODIES[template] + SHELL_TAIL
