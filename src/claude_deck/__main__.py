from claude_deck.main import main

main()
